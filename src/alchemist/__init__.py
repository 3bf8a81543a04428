"""Data Alchemist: ingestion, rule-based validation and export of workforce scheduling data."""

__version__ = "0.1.0"

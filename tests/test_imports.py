def test_imports():
    """
    @brief
    Verifies that all core Data Alchemist modules are importable.

    @details
    Ensures package structure integrity and confirms that
    alchemist, alchemist.dataloader, alchemist.validator and
    alchemist.export.exporter are accessible without import errors.
    """
    import alchemist
    import alchemist.dataloader
    import alchemist.export.exporter
    import alchemist.validator

    # --- Assert ---
    # Confirm that modules were successfully imported and resolved
    assert all([alchemist, alchemist.dataloader, alchemist.validator, alchemist.export.exporter])
    assert alchemist.__version__

"""Basic tests to ensure the setup is working."""


def test_import():
    """Test that we can import the xdf_tbl module."""
    import xdf_tbl

    assert xdf_tbl.__version__ == "0.1.0"


def test_public_api():
    """Test that the summarise verb and its alias are exported."""
    import xdf_tbl

    assert xdf_tbl.summarize is xdf_tbl.summarise
    assert "XdfTable" in xdf_tbl.__all__

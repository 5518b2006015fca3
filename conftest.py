"""
Pytest configuration for the ADF disk builder test suite.

    pytest                  # everything
    pytest -m "not cli"     # core only (no temp folders, no argparse)
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers",
        "cli: tests that run the loader or adfutil against temp folders")

"""
Fixtures for CLI tests.
"""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def keep_logging_config():
    """Stop CLI runs from reconfiguring the root logger during tests."""
    with patch("pawnkit.cli.parser.logging.basicConfig") as basic_config:
        yield basic_config

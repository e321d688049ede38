import logging

import pytest


@pytest.fixture(autouse=True)
def _drop_cli_log_handlers():
    """cli.main() installs a stderr handler on the root logger; remove it after each test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)

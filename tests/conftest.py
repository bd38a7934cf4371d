from __future__ import annotations

import logging

import pytest

from lotusdash.utils.logging_setup import _NOISY_LOGGERS


@pytest.fixture()
def restore_root_logger():
    """setup_logging() reconfigures the root logger; put the test runner's handlers back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    library_levels = {name: logging.getLogger(name).level for name in _NOISY_LOGGERS}
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    for name, lvl in library_levels.items():
        logging.getLogger(name).setLevel(lvl)

# tests/conftest.py
import logging

import pytest


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo setup_logging() calls so tests do not leak handlers or levels."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.getLogger("echoping").setLevel(logging.NOTSET)

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_extmirror_logger():
    """Undo configure_logging so caplog sees extmirror records."""
    yield
    logger = logging.getLogger('extmirror')
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
    logger.propagate = True

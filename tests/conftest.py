import logging

import pytest


@pytest.fixture(autouse=True)
def restore_package_logger():
    """build_services() configures the package logger; undo it so caplog keeps working."""
    logger = logging.getLogger("contract_lens")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate

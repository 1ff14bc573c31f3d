"""
Shared pytest fixtures for dessim tests.
"""

import logging

import pytest

from dessim import InMemoryTraceRecorder, Simulation


@pytest.fixture(autouse=True)
def reset_dessim_logging():
    """Reset logging state before each test.

    Ensures tests start with a clean logging configuration:
    - Removes all handlers except NullHandler
    - Resets level to NOTSET (inherit from parent)

    This prevents logging configuration from one test affecting another.
    """
    logger = logging.getLogger("dessim")

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)

    yield

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def sim() -> Simulation:
    """A fresh simulation starting at t=0."""
    return Simulation()


@pytest.fixture
def recorder() -> InMemoryTraceRecorder:
    return InMemoryTraceRecorder()

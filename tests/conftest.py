"""Shared fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_root_logging():
    """Drop handlers a CLI run attached to its captured stdout."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)

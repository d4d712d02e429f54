"""Tests for the package logger factory."""

import logging

import pytest

from kma.config.settings import settings
from kma.src.utils.logger import _LOG_FORMAT, HANDLER_NAME, PACKAGE_LOGGER, default_level, get_logger, set_level


@pytest.fixture
def package_level():
    root = logging.getLogger(PACKAGE_LOGGER)
    saved = root.level
    yield root
    root.setLevel(saved)


def test_module_loggers_share_one_handler():
    a = get_logger("kma.src.core.chunker")
    b = get_logger("kma.src.core.indexer")

    assert a.getEffectiveLevel() == logging.getLogger(PACKAGE_LOGGER).level
    assert not a.handlers and not b.handlers
    (own,) = [h for h in logging.getLogger(PACKAGE_LOGGER).handlers if h.get_name() == HANDLER_NAME]
    assert type(own) is logging.StreamHandler
    assert own.formatter._fmt == _LOG_FORMAT
    assert logging.getLogger(PACKAGE_LOGGER).propagate is False


def test_foreign_names_are_rerooted():
    assert get_logger("__main__").name == "kma.__main__"
    assert get_logger("kma").name == "kma"


def test_per_logger_override():
    logger = get_logger("kma.tests.override", level=logging.ERROR)
    assert logger.level == logging.ERROR


def test_set_level_applies_to_children(package_level):
    child = get_logger("kma.tests.child")

    set_level(logging.DEBUG)
    assert child.isEnabledFor(logging.DEBUG)

    set_level("ERROR")
    assert not child.isEnabledFor(logging.WARNING)


def test_default_level_from_env_and_override(monkeypatch):
    monkeypatch.setattr(settings, "LOG_LEVEL", None)
    monkeypatch.setattr(settings, "ENV", "dev")
    assert default_level() == logging.DEBUG

    monkeypatch.setattr(settings, "ENV", "prod")
    assert default_level() == logging.WARNING

    monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
    assert default_level() == logging.INFO

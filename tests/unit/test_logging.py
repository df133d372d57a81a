"""Unit tests for the SDK logger helper."""
import logging

from mws_sdk.logging import SDK_LOGGER_NAME, get_logger


def test_component_logger_is_namespaced():
    assert get_logger("MWSClient").name == "mws_sdk.MWSClient"


def test_qualified_name_is_kept():
    assert get_logger("mws_sdk.amazon.decoder").name == "mws_sdk.amazon.decoder"


def test_handler_attached_once():
    get_logger("One")
    get_logger("Two")

    root = logging.getLogger(SDK_LOGGER_NAME)
    assert len(root.handlers) == 1
    assert root.level == logging.INFO


def test_component_loggers_share_the_sdk_handler():
    logger = get_logger("Reports")

    assert not logger.handlers
    assert logger.propagate
    assert logger.getEffectiveLevel() == logging.INFO

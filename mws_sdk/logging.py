"""
SDK logging.

Every SDK logger lives under the "mws_sdk" namespace. The stream handler is
attached once to that namespace logger, so module loggers created with
`logging.getLogger(__name__)` share it.
"""
import logging

SDK_LOGGER_NAME = "mws_sdk"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str) -> logging.Logger:
    """
    Get an SDK logger, configuring the SDK's stream handler on first use.

    Args:
        name: Component name ("MWSClient") or an already qualified
              "mws_sdk...." name

    Returns:
        Logger instance under the SDK namespace
    """
    root = logging.getLogger(SDK_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)

    if name == SDK_LOGGER_NAME or name.startswith(SDK_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{SDK_LOGGER_NAME}.{name}")

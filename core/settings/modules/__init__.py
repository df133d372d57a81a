# Settings modules
from .mws_settings import MWSSettings
from .app_settings import AppSettings, get_app_settings, get_mws_settings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "get_mws_settings",
    "MWSSettings",
]

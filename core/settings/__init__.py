# Settings package
from core.settings.modules import AppSettings, MWSSettings, get_app_settings, get_mws_settings

__all__ = ["get_app_settings", "get_mws_settings", "AppSettings", "MWSSettings"]

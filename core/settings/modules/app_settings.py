from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from core.settings.modules.mws_settings import MWSSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    mws: MWSSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(mws=MWSSettings())


def get_mws_settings() -> MWSSettings:
    """Return the cached MWS settings section."""
    return get_app_settings().mws

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field

from core.settings.base import MWSBaseSettings

if TYPE_CHECKING:
    from mws_sdk.amazon.marketplaces import Credentials


class MWSSettings(MWSBaseSettings):
    """
    Amazon MWS seller settings.
    Loaded from the environment / .env with exact variable name matching.

    Missing values load as empty strings; `to_credentials()` is where they
    are rejected, so every credential problem surfaces as ConfigurationError.
    """

    # === Credentials ===
    seller_id: str = Field(default="", alias="MWS_SELLER_ID")
    marketplace_id: str = Field(default="", alias="MWS_MARKETPLACE_ID")
    access_key_id: str = Field(default="", alias="MWS_ACCESS_KEY_ID")
    secret_access_key: str = Field(default="", alias="MWS_SECRET_ACCESS_KEY", repr=False)
    application_version: str = Field(default="0.0.*", alias="MWS_APPLICATION_VERSION")

    # === Transport ===
    http_timeout: float = Field(default=30.0, alias="MWS_HTTP_TIMEOUT")  # seconds

    def to_credentials(self) -> "Credentials":
        from mws_sdk.amazon.marketplaces import Credentials

        return Credentials(
            seller_id=self.seller_id,
            marketplace_id=self.marketplace_id,
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            application_version=self.application_version,
        )

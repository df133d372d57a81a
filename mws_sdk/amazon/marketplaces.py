"""Marketplace table and seller credentials."""
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Mapping

from mws_sdk.errors import ConfigurationError


# Marketplace id -> regional MWS host
MARKETPLACE_HOSTS: Mapping[str, str] = MappingProxyType({
    "A2EUQ1WTGCTBG2": "mws.amazonservices.ca",      # CA
    "ATVPDKIKX0DER": "mws.amazonservices.com",      # US
    "A1AM78C64UM0Y8": "mws.amazonservices.com.mx",  # MX
    "A1PA6795UKMFR9": "mws-eu.amazonservices.com",  # DE
    "A1RKKUPIHCS9HS": "mws-eu.amazonservices.com",  # ES
    "A13V1IB3VIYZZH": "mws-eu.amazonservices.com",  # FR
    "A21TJRUUN4KGV": "mws.amazonservices.in",       # IN
    "APJ6JRA9NG5V4": "mws-eu.amazonservices.com",   # IT
    "A1F83G8C2ARO7P": "mws-eu.amazonservices.com",  # UK
    "A1VC38T7YXB528": "mws.amazonservices.jp",      # JP
    "AAHKV2X7AFYLW": "mws.amazonservices.com.cn",   # CN
})


def region_host_for(marketplace_id: str) -> str:
    """
    Resolve the API host serving a marketplace.

    Raises:
        ConfigurationError: If the marketplace id is not in the table.
    """
    try:
        return MARKETPLACE_HOSTS[marketplace_id]
    except KeyError:
        raise ConfigurationError(
            f"Invalid Marketplace Id: {marketplace_id!r}"
        ) from None


@dataclass(frozen=True)
class Credentials:
    """
    Immutable seller credentials for one marketplace.

    The region host and URL are derived once from the marketplace id and
    never recomputed.
    """
    seller_id: str
    marketplace_id: str
    access_key_id: str
    secret_access_key: str = field(repr=False)
    application_version: str = "0.0.*"
    region_host: str = field(init=False)
    region_url: str = field(init=False)

    def __post_init__(self):
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if value is None or not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"Required field {f.name} is not set")

        host = region_host_for(self.marketplace_id)
        object.__setattr__(self, "region_host", host)
        object.__setattr__(self, "region_url", f"https://{host}")

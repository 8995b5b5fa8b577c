"""Registered Jira sites and resolution of a site name to a webhook destination."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, NamedTuple, Optional

from pydantic import BaseModel, Field, field_validator

from jira_notifier.credentials import CredentialStore
from jira_notifier.exceptions import SiteResolutionError

logger = logging.getLogger(__name__)

NO_SITE_CONFIGURED = "No Jira site has been configured"
MULTIPLE_SITES_CONFIGURED = (
    "More than one Jira site is configured; specify which site to send the update to"
)


class SiteConfig(BaseModel):
    """One Jira site the pipeline can report to."""

    site: str = Field(..., min_length=1)
    webhook_url: str = Field(..., min_length=1)
    credentials_id: Optional[str] = None

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, value: str) -> str:
        url = value.strip()
        if not url.startswith(("http://", "https://")):
            raise ValueError("webhook_url must be an absolute http(s) URL")
        return url


class Destination(NamedTuple):
    url: str
    secret: Optional[str]


class SiteRegistry:
    """Read-mostly list of configured sites.

    With ``strict=True`` an omitted site name that matches zero or several
    sites raises :class:`SiteResolutionError` instead of returning None.
    """

    def __init__(self, sites: Iterable[SiteConfig] = (), strict: bool = False) -> None:
        self._lock = threading.Lock()
        self._sites: List[SiteConfig] = list(sites)
        self.strict = strict

    def list_sites(self) -> List[SiteConfig]:
        with self._lock:
            return list(self._sites)

    def set_sites(self, sites: Iterable[SiteConfig]) -> None:
        with self._lock:
            self._sites = list(sites)

    def resolve(self, site: Optional[str] = None) -> Optional[SiteConfig]:
        """Return the config for *site*, or the only configured site if *site* is None."""
        sites = self.list_sites()
        if site is not None:
            return next((s for s in sites if s.site == site), None)

        if len(sites) == 1:
            return sites[0]
        message = NO_SITE_CONFIGURED if not sites else MULTIPLE_SITES_CONFIGURED
        if self.strict:
            raise SiteResolutionError(message)
        logger.warning(message)
        return None


class DestinationResolver:
    """Combines the site registry and credential store into ``(url, secret)`` pairs."""

    def __init__(self, registry: SiteRegistry, credentials: CredentialStore) -> None:
        self.registry = registry
        self.credentials = credentials

    def resolve_site(self, site: Optional[str] = None) -> Optional[SiteConfig]:
        return self.registry.resolve(site)

    def destination_for(self, config: SiteConfig) -> Optional[Destination]:
        """None when the site names credentials that the store does not hold."""
        if not config.credentials_id:
            return Destination(config.webhook_url, None)
        secret = self.credentials.get_secret(config.credentials_id)
        if secret is None:
            logger.warning(
                f"No secret found for credentials '{config.credentials_id}' of site '{config.site}'"
            )
            return None
        return Destination(config.webhook_url, secret)

    def resolve(self, site: Optional[str] = None) -> Optional[Destination]:
        config = self.resolve_site(site)
        if config is None:
            return None
        return self.destination_for(config)

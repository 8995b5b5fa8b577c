"""
Environment-driven configuration.

Settings come from ``JIRA_NOTIFIER_*`` environment variables, optionally
seeded from a ``.env`` file via python-dotenv.  Shared secrets are read from
``JIRA_NOTIFIER_SECRET_<ID>`` where ``<ID>`` is the upper-cased credentials
id with dashes and dots replaced by underscores.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Pattern, Union

from dotenv import load_dotenv
from pydantic import ValidationError

from jira_notifier._base import DEFAULT_TIMEOUT
from jira_notifier.client import WebhookClient
from jira_notifier.credentials import CredentialStore
from jira_notifier.rate_limiter import TokenBucket
from jira_notifier.sender import JiraEventSender
from jira_notifier.sites import DestinationResolver, SiteConfig, SiteRegistry

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SECRET_ENV_PREFIX = "JIRA_NOTIFIER_SECRET_"

_TRUE_VALUES = {"1", "true", "yes", "on"}

DEFAULT_AUTO_DEPLOYMENTS_REGEX = r"^deploy to (?P<envName>.*)$"


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Configure root logging with the standard format."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def secret_env_name(credentials_id: str) -> str:
    return SECRET_ENV_PREFIX + credentials_id.upper().replace("-", "_").replace(".", "_")


@dataclass
class NotifierSettings:
    """Runtime settings for the notifier."""

    timeout: float = DEFAULT_TIMEOUT
    rate_limit_per_minute: int = 0  # 0 disables client-side limiting
    rate_burst: int = 10
    strict_sites: bool = False
    sites: List[SiteConfig] = field(default_factory=list)
    secrets: Dict[str, str] = field(default_factory=dict)
    auto_builds_enabled: bool = False
    auto_builds_regex: str = ""
    auto_deployments_enabled: bool = False
    auto_deployments_regex: str = DEFAULT_AUTO_DEPLOYMENTS_REGEX
    auto_builds_pattern: Optional[Pattern[str]] = field(init=False, default=None, repr=False, compare=False)
    auto_deployments_pattern: Optional[Pattern[str]] = field(init=False, default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        # a disabled feature keeps its regex but is not compiled
        if self.auto_deployments_enabled:
            if not self.auto_deployments_regex or not self.auto_deployments_regex.strip():
                raise ValueError("Deployments RegEx must be provided!")
            self.auto_deployments_pattern = _compile_pattern(
                "JIRA_NOTIFIER_AUTO_DEPLOYMENTS_REGEX", self.auto_deployments_regex
            )
        if self.auto_builds_enabled and self.auto_builds_regex:
            self.auto_builds_pattern = _compile_pattern("JIRA_NOTIFIER_AUTO_BUILDS_REGEX", self.auto_builds_regex)

    def is_auto_build(self, stage_name: str) -> bool:
        """True if *stage_name* should be reported as a build automatically."""
        if not self.auto_builds_enabled:
            return False
        if self.auto_builds_pattern is None:
            return True
        return self.auto_builds_pattern.search(stage_name) is not None

    def auto_deployment_environment(self, stage_name: str) -> Optional[str]:
        """Environment name captured from a deployment stage, or ``None``."""
        if self.auto_deployments_pattern is None:
            return None
        match = self.auto_deployments_pattern.search(stage_name)
        if match is None:
            return None
        return match.groupdict().get("envName") or stage_name

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "NotifierSettings":
        """Build settings from *env* (defaults to ``os.environ``).

        Raises:
            ValueError: If a variable is present but malformed.
        """
        env = os.environ if env is None else env
        try:
            timeout = float(env.get("JIRA_NOTIFIER_TIMEOUT", DEFAULT_TIMEOUT))
            rate_limit = int(env.get("JIRA_NOTIFIER_RATE_LIMIT", "0"))
            burst = int(env.get("JIRA_NOTIFIER_RATE_BURST", "10"))
        except ValueError as exc:
            raise ValueError(f"Invalid numeric notifier setting: {exc}") from exc
        if timeout <= 0:
            raise ValueError("JIRA_NOTIFIER_TIMEOUT must be > 0")
        if rate_limit < 0 or burst < 1:
            raise ValueError("JIRA_NOTIFIER_RATE_LIMIT must be >= 0 and JIRA_NOTIFIER_RATE_BURST >= 1")

        sites = _parse_sites(env.get("JIRA_NOTIFIER_SITES", "[]"))
        secrets: Dict[str, str] = {}
        for site in sites:
            if site.credentials_id:
                secret = env.get(secret_env_name(site.credentials_id))
                if secret:
                    secrets[site.credentials_id] = secret

        return cls(
            timeout=timeout,
            rate_limit_per_minute=rate_limit,
            rate_burst=burst,
            strict_sites=_flag(env, "JIRA_NOTIFIER_STRICT_SITES"),
            sites=sites,
            secrets=secrets,
            auto_builds_enabled=_flag(env, "JIRA_NOTIFIER_AUTO_BUILDS"),
            auto_builds_regex=env.get("JIRA_NOTIFIER_AUTO_BUILDS_REGEX", ""),
            auto_deployments_enabled=_flag(env, "JIRA_NOTIFIER_AUTO_DEPLOYMENTS"),
            auto_deployments_regex=env.get("JIRA_NOTIFIER_AUTO_DEPLOYMENTS_REGEX", DEFAULT_AUTO_DEPLOYMENTS_REGEX),
        )


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUE_VALUES


def _compile_pattern(name: str, regex: str) -> Pattern[str]:
    # (?<name>...) groups are rewritten to Python's (?P<name>...)
    regex = re.sub(r"\(\?<(?=[A-Za-z_])", "(?P<", regex)
    try:
        return re.compile(regex)
    except re.error as exc:
        raise ValueError(f"{name} is not a valid regular expression: {exc}") from exc


def _parse_sites(raw: str) -> List[SiteConfig]:
    try:
        data = json.loads(raw or "[]")
    except json.JSONDecodeError as exc:
        raise ValueError(f"JIRA_NOTIFIER_SITES is not valid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("JIRA_NOTIFIER_SITES must be a JSON object or list of objects")
    try:
        return [SiteConfig(**item) for item in data]
    except (TypeError, ValidationError) as exc:
        raise ValueError(f"Invalid site in JIRA_NOTIFIER_SITES: {exc}") from exc


def load_settings(dotenv_path: Optional[Union[str, Path]] = None) -> NotifierSettings:
    """Load ``.env`` (if present) into the environment, then read settings."""
    load_dotenv(dotenv_path=dotenv_path)
    return NotifierSettings.from_env()


def build_client(settings: NotifierSettings) -> WebhookClient:
    rate_limiter = None
    if settings.rate_limit_per_minute > 0:
        rate_limiter = TokenBucket.per_minute(settings.rate_limit_per_minute, settings.rate_burst)
    return WebhookClient(timeout=settings.timeout, rate_limiter=rate_limiter)


def build_sender(settings: NotifierSettings) -> JiraEventSender:
    registry = SiteRegistry(settings.sites, strict=settings.strict_sites)
    credentials = CredentialStore.from_mapping(settings.secrets)
    return JiraEventSender(build_client(settings), DestinationResolver(registry, credentials))

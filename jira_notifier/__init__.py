"""jira-notifier: deliver CI build and deployment events to the Jenkins app in Jira."""

from jira_notifier.client import WebhookClient
from jira_notifier.async_client import AsyncWebhookClient
from jira_notifier.exceptions import (
    ErrorKind,
    SiteResolutionError,
    WebhookDeliveryError,
)
from jira_notifier.serialization import JsonSerializer
from jira_notifier.signing import TokenSigner, decode_token

__all__ = [
    "WebhookClient",
    "AsyncWebhookClient",
    "ErrorKind",
    "SiteResolutionError",
    "WebhookDeliveryError",
    "JsonSerializer",
    "TokenSigner",
    "decode_token",
]

__version__ = "0.1.0"

"""
Pipeline-facing senders for build and deployment events.

Each call resolves the target site, delivers the event through a
:class:`WebhookClient` (signed when the site has a secret), and turns the
outcome into a :class:`SendInfoResponse`.  Delivery failures are reported,
never raised, and a one-line summary is written to the result sink.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from jira_notifier.client import WebhookClient
from jira_notifier.exceptions import SiteResolutionError, WebhookDeliveryError
from jira_notifier.models import (
    BuildEventRequest,
    DeploymentEventRequest,
    JenkinsAppEventRequest,
    JenkinsAppResponse,
    SendInfoResponse,
    SendInfoStatus,
)
from jira_notifier.sites import (
    MULTIPLE_SITES_CONFIGURED,
    NO_SITE_CONFIGURED,
    DestinationResolver,
)

logger = logging.getLogger(__name__)

BUILD_STEP = "jiraSendBuildInfo"
DEPLOYMENT_STEP = "jiraSendDeploymentInfo"


class JiraEventSender:
    """Sends pipeline events to the configured Jira site(s).

    ``result_sink`` receives one human-readable line per call; it defaults
    to this module's logger at INFO.
    """

    def __init__(
        self,
        client: WebhookClient,
        resolver: DestinationResolver,
        result_sink: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.client = client
        self.resolver = resolver
        self._sink = result_sink or logger.info

    def send_build_info(
        self, request: BuildEventRequest, site: Optional[str] = None
    ) -> SendInfoResponse:
        response = self._send(
            request,
            site,
            success=SendInfoStatus.SUCCESS_BUILD_ACCEPTED,
            failure=SendInfoStatus.FAILURE_BUILD_UPDATE,
        )
        self.log_result(BUILD_STEP, response)
        return response

    def send_deployment_info(
        self, request: DeploymentEventRequest, site: Optional[str] = None
    ) -> SendInfoResponse:
        response = self._send(
            request,
            site,
            success=SendInfoStatus.SUCCESS_DEPLOYMENT_ACCEPTED,
            failure=SendInfoStatus.FAILURE_DEPLOYMENT_UPDATE,
        )
        self.log_result(DEPLOYMENT_STEP, response)
        return response

    def log_result(self, step: str, response: SendInfoResponse) -> None:
        self._sink(f"{step}: {response.status.value}: {response.message}")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _send(
        self,
        request: JenkinsAppEventRequest,
        site: Optional[str],
        success: SendInfoStatus,
        failure: SendInfoStatus,
    ) -> SendInfoResponse:
        try:
            config = self.resolver.resolve_site(site)
        except SiteResolutionError as exc:
            return SendInfoResponse(status=SendInfoStatus.FAILURE_SITE_CONFIG_NOT_FOUND, message=str(exc))
        if config is None:
            return SendInfoResponse(
                status=SendInfoStatus.FAILURE_SITE_CONFIG_NOT_FOUND,
                message=self._missing_site_message(site),
            )

        destination = self.resolver.destination_for(config)
        if destination is None:
            return SendInfoResponse(
                status=SendInfoStatus.FAILURE_SECRET_NOT_FOUND,
                message=f"Secret for Jira site '{config.site}' not found (credentials '{config.credentials_id}')",
            )

        try:
            if destination.secret:
                reply = self.client.send_signed(
                    destination.url, destination.secret, request, JenkinsAppResponse
                )
            else:
                reply = self.client.send(destination.url, request, JenkinsAppResponse)
        except WebhookDeliveryError as exc:
            logger.debug(f"Delivery to '{config.site}' failed ({exc.kind.value})", exc_info=exc)
            return SendInfoResponse(status=failure, message=exc.message)

        if not reply.success:
            return SendInfoResponse(
                status=SendInfoStatus.FAILURE_REJECTED,
                message=reply.message or f"Jira site '{config.site}' rejected the update",
            )
        return SendInfoResponse(
            status=success,
            message=reply.message or f"{request.event_type.capitalize()} update accepted by Jira site '{config.site}'",
        )

    def _missing_site_message(self, site: Optional[str]) -> str:
        if site is not None:
            return f"No config found for Jira site '{site}'"
        if self.resolver.registry.list_sites():
            return MULTIPLE_SITES_CONFIGURED
        return NO_SITE_CONFIGURED

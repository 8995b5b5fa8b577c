"""
Pydantic models for requests sent to, and responses received from, the
Jenkins app in Jira, plus the result type reported back to the pipeline.

Request bodies are treated as opaque by the client; these models only fix
the envelope fields the pipeline integration always sends.
"""
from __future__ import annotations

import time
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ENVIRONMENT_TYPES = ("unmapped", "development", "testing", "staging", "production")


# ============================================================
# Requests
# ============================================================


class JenkinsAppRequest(BaseModel):
    """Base envelope for every request posted to the Jenkins app."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    request_type: str = "event"


class JenkinsAppEventRequest(JenkinsAppRequest):
    """A pipeline event (build or deployment)."""

    event_type: Literal["build", "deployment"]
    pipeline_id: str = Field(..., min_length=1)
    pipeline_display_name: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
    last_updated: int = Field(default_factory=lambda: int(time.time() * 1000))


class BuildEventRequest(JenkinsAppEventRequest):
    event_type: Literal["build"] = "build"
    build_number: Optional[int] = None


class DeploymentEventRequest(JenkinsAppEventRequest):
    event_type: Literal["deployment"] = "deployment"
    environment_id: str = Field(..., min_length=1)
    environment_name: str = Field(..., min_length=1)
    environment_type: str = "unmapped"

    @field_validator("environment_type")
    @classmethod
    def validate_environment_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ENVIRONMENT_TYPES:
            raise ValueError(
                f"environment_type must be one of: {', '.join(ENVIRONMENT_TYPES)}"
            )
        return normalized


# ============================================================
# Responses
# ============================================================


class JenkinsAppResponse(BaseModel):
    """Reply from the Jenkins app webhook. Unknown fields are kept.

    A reply that does not say it succeeded is treated as a rejection.
    """

    model_config = ConfigDict(extra="allow")

    success: bool = False
    message: str = ""


class SendInfoStatus(str, Enum):
    SUCCESS_BUILD_ACCEPTED = "SUCCESS_BUILD_ACCEPTED"
    SUCCESS_DEPLOYMENT_ACCEPTED = "SUCCESS_DEPLOYMENT_ACCEPTED"
    FAILURE_SITE_CONFIG_NOT_FOUND = "FAILURE_SITE_CONFIG_NOT_FOUND"
    FAILURE_SECRET_NOT_FOUND = "FAILURE_SECRET_NOT_FOUND"
    FAILURE_BUILD_UPDATE = "FAILURE_BUILD_UPDATE"
    FAILURE_DEPLOYMENT_UPDATE = "FAILURE_DEPLOYMENT_UPDATE"
    FAILURE_REJECTED = "FAILURE_REJECTED"


class SendInfoResponse(BaseModel):
    """Outcome of one send, as printed to the pipeline log."""

    status: SendInfoStatus
    message: str

    @property
    def is_success(self) -> bool:
        return self.status.value.startswith("SUCCESS")

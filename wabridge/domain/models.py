"""Domain models for the relay."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Queue
# ============================================================================


@dataclass(frozen=True)
class MessageRecord:
    """One inbound WhatsApp message waiting to be pulled."""

    sender: str
    content: str


# ============================================================================
# Credentials
# ============================================================================


class CredentialBundle(BaseModel):
    """Per-account credentials round-tripped through the ticketing platform.

    The relay never stores these; the platform posts them back as the
    ``metadata`` field of every pull and channelback request.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: str = Field(default="", description="Integration instance name")
    jwt: str = Field(default="", description="Bearer token for the Messages API")
    whatsapp_number: str = Field(default="", alias="whatsappNumber", description="Business WhatsApp number")

    def serialize(self) -> str:
        return self.model_dump_json(by_alias=True)

    def __repr__(self) -> str:
        return f"CredentialBundle(name={self.name!r}, whatsapp_number={self.whatsapp_number!r})"

    __str__ = __repr__


# ============================================================================
# Ticketing platform (pull / channelback) wire models
# ============================================================================


class AuthorField(BaseModel):
    id: str
    value: str


class Author(BaseModel):
    external_id: str
    fields: list[AuthorField] = Field(default_factory=list)


class ExternalResource(BaseModel):
    """A message as the ticketing platform imports it."""

    external_id: str
    thread_id: str
    message: str
    html_message: str
    created_at: str = Field(description="ISO8601 UTC drain time")
    author: Author
    allow_channelback: bool = True


class PullResponse(BaseModel):
    external_resources: list[ExternalResource] = Field(default_factory=list)


class ChannelbackAck(BaseModel):
    external_id: str
    allow_channelback: bool = True


class PlatformForm(BaseModel):
    """Fields posted by the ticketing platform, either urlencoded or JSON.

    Numbers (phone numbers sent as JSON numbers) are accepted as strings;
    any other non-string value is a validation error.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class AdminUiForm(PlatformForm):
    name: Optional[str] = None
    return_url: Optional[str] = None


class AdminSetupForm(PlatformForm):
    name: str = ""
    jwt: str = ""
    whatsapp_number: str = Field(default="", alias="whatsappNumber")
    return_url: Optional[str] = None


class ChannelbackRequest(PlatformForm):
    message: str
    thread_id: str = Field(min_length=1)


class ManifestUrls(BaseModel):
    admin_ui: str = "./admin_ui"
    pull_url: str = "./pull"
    channelback_url: str = "./channelback"
    clickthrough_url: str = "./clickthrough"
    healthcheck_url: str = "./healthcheck"
    event_callback_url: str = "./event_callback"


class Manifest(BaseModel):
    name: str
    id: str
    author: str
    version: str
    channelback_files: bool = True
    urls: ManifestUrls = Field(default_factory=ManifestUrls)


# ============================================================================
# Messages API provider wire models
# ============================================================================


class Endpoint(BaseModel):
    type: str = "whatsapp"
    number: str


class InboundContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "text"
    text: Optional[str] = None


class InboundMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    content: InboundContent


class InboundEvent(BaseModel):
    """Provider webhook payload for an inbound WhatsApp message."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    direction: Optional[str] = None
    message_uuid: Optional[str] = None
    sender: Optional[Endpoint] = Field(default=None, alias="from")
    to: Optional[Endpoint] = None
    message: Optional[InboundMessage] = None


# ============================================================================
# Dispatch results
# ============================================================================


class DispatchOutcome(str, Enum):
    """How an outbound provider call ended."""

    delivered = "delivered"
    provider_rejected = "provider_rejected"
    network_failure = "network_failure"


class DispatchResult(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    outcome: DispatchOutcome
    to: str
    status_code: Optional[int] = None
    provider_message_id: Optional[str] = None
    attempts: int = 1
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == DispatchOutcome.delivered

    def log_context(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

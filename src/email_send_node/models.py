# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Data models for the email send node.

Pydantic models validate what comes in from the host (credentials and the
per-item parameter bag) and what goes out (delivery results). The draft
built for each item is a plain mutable dataclass, scoped to that item.

Models:
    - SmtpCredentials: SMTP connection settings ("smtp" credential set)
    - SendOptions: Optional fields from the node's "options" collection
    - EmailSendParameters: Complete, validated parameters for one item
    - MessageDraft: Outbound message under construction
    - DeliveryResult: What the transport reports after a send
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from email.utils import getaddresses
from enum import Enum
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .addresses import validate_address, validate_address_list
from .errors import EmailSendWarning


def _reject_line_breaks(value: str) -> str:
    """Header-bound text must stay on one line."""
    if "\r" in value or "\n" in value:
        raise ValueError(f"must not contain line breaks: {value!r}")
    return value


class EmailFormat(str, Enum):
    """Body formats selectable on the node.

    Attributes:
        TEXT: Plain text body only.
        HTML: HTML body only.
        BOTH: Plain text and HTML alternatives.
    """

    TEXT = "text"
    HTML = "html"
    BOTH = "both"


class Priority(str, Enum):
    """Message priority as exposed on the node."""

    NORMAL = "normal"
    HIGH = "high"
    LOW = "low"


class SmtpCredentials(BaseModel):
    """Connection settings of the "smtp" credential set.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port.
        secure: Use implicit TLS (typically port 465). When False the
            connection is upgraded with STARTTLS if the server offers it.
        user: Username for SMTP authentication.
        password: Password for SMTP authentication.
        allow_unauthorized_certs: Skip TLS certificate verification.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    host: Annotated[
        str,
        Field(min_length=1, max_length=255, description="SMTP server hostname")
    ]
    port: Annotated[
        int,
        Field(default=465, ge=1, le=65535, description="SMTP server port")
    ]
    secure: Annotated[
        bool,
        Field(default=True, description="Use implicit TLS")
    ]
    user: Annotated[
        str | None,
        Field(default=None, max_length=255, description="SMTP username")
    ]
    password: Annotated[
        str | None,
        Field(default=None, max_length=255, repr=False, description="SMTP password")
    ]
    allow_unauthorized_certs: Annotated[
        bool,
        Field(
            default=False,
            alias="allowUnauthorizedCerts",
            description="Connect even if the certificate cannot be verified",
        )
    ]


class SendOptions(BaseModel):
    """Optional fields from the node's "options" collection.

    Address lists are comma separated and validated only when non-blank.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    attachments: Annotated[
        str,
        Field(
            default="",
            validation_alias=AliasChoices("attachments", "adjuntos"),
            description="Comma separated binary property names",
        )
    ]
    cc_email: Annotated[
        str,
        Field(default="", alias="ccEmail", description="CC address(es)")
    ]
    bcc_email: Annotated[
        str,
        Field(default="", alias="bccEmail", description="BCC address(es)")
    ]
    reply_to: Annotated[
        str,
        Field(default="", alias="replyTo", description="Reply-To address(es)")
    ]
    calendar_event: Annotated[
        str,
        Field(default="", alias="calendarEvent", description="Raw ICS content")
    ]
    date: Annotated[
        str | datetime | None,
        Field(default=None, description="Custom Date header")
    ]
    in_reply_to: Annotated[
        str,
        Field(default="", alias="inReplyTo", description="Message-ID being answered")
    ]
    references: Annotated[
        str,
        Field(default="", description="Comma separated Message-IDs")
    ]
    priority: Annotated[
        Priority | None,
        Field(default=None, description="Message priority")
    ]
    append_credits: Annotated[
        bool,
        Field(default=False, alias="appendCredits", description="Append the credit line")
    ]
    allow_unauthorized_certs: Annotated[
        bool,
        Field(
            default=False,
            alias="allowUnauthorizedCerts",
            description="Skip TLS certificate verification for this item",
        )
    ]

    @field_validator("cc_email", "bcc_email", "reply_to")
    @classmethod
    def validate_optional_address_list(cls, v: str) -> str:
        """Reject non-blank address lists containing a malformed address."""
        if v.strip() and not validate_address_list(v):
            raise ValueError(f"invalid email address list: {v!r}")
        return v

    @field_validator("in_reply_to", "references")
    @classmethod
    def validate_message_ids(cls, v: str) -> str:
        return _reject_line_breaks(v)

    @field_validator("priority", mode="before")
    @classmethod
    def blank_priority_is_unset(cls, v: Any) -> Any:
        """An empty selection leaves the priority unset."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class EmailSendParameters(BaseModel):
    """Validated parameters for one input item.

    Field aliases are the host's parameter names, so a raw parameter bag
    can be passed straight to ``model_validate``.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_email: Annotated[
        str,
        Field(alias="fromEmail", description="Sender email address")
    ]
    to_email: Annotated[
        str,
        Field(alias="toEmail", description="Recipient address(es), comma separated")
    ]
    subject: Annotated[
        str,
        Field(default="", description="Email subject")
    ]
    email_format: Annotated[
        str,
        Field(default=EmailFormat.HTML.value, alias="emailFormat", description="text, html or both")
    ]
    text: Annotated[
        str,
        Field(default="", description="Plain text body")
    ]
    html: Annotated[
        str,
        Field(default="", description="HTML body")
    ]
    enable_custom_headers: Annotated[
        bool,
        Field(default=False, alias="enableCustomHeaders", description="Apply custom headers")
    ]
    custom_headers: Annotated[
        str,
        Field(default="", alias="customHeaders", description="Custom headers as a JSON object")
    ]
    test_mode: Annotated[
        bool,
        Field(default=False, alias="testMode", description="Redirect to the test address")
    ]
    test_email: Annotated[
        str,
        Field(default="", alias="testEmail", description="Test recipient")
    ]
    test_subject_prefix: Annotated[
        str,
        Field(default="[TEST]", alias="testSubjectPrefix", description="Subject prefix in test mode")
    ]
    options: Annotated[
        SendOptions,
        Field(default_factory=SendOptions, description="Optional fields")
    ]

    @field_validator("from_email")
    @classmethod
    def validate_sender(cls, v: str) -> str:
        if not validate_address(v.strip(), required=True):
            raise ValueError(f"invalid sender address: {v!r}")
        return v.strip()

    @field_validator("to_email")
    @classmethod
    def validate_recipients(cls, v: str) -> str:
        if not validate_address_list(v, required=True):
            raise ValueError(f"invalid recipient address list: {v!r}")
        return v

    @field_validator("subject", "test_subject_prefix")
    @classmethod
    def validate_single_line(cls, v: str) -> str:
        return _reject_line_breaks(v)

    @field_validator("custom_headers", mode="before")
    @classmethod
    def serialize_structured_headers(cls, v: Any) -> Any:
        """Accept headers the host already decoded from JSON."""
        if v is None:
            return ""
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return v

    @model_validator(mode="after")
    def validate_test_address(self) -> EmailSendParameters:
        if self.test_mode and self.test_email.strip():
            if not validate_address(self.test_email.strip()):
                raise ValueError(f"invalid test address: {self.test_email!r}")
        return self


@dataclass
class Attachment:
    """Attachment resolved from the binary store."""

    filename: str
    content: bytes
    cid: str
    mime_type: str | None = None


@dataclass
class CalendarInvite:
    """ICS invitation sent as a ``text/calendar`` alternative."""

    content: str
    filename: str = "event.ics"
    method: str = "REQUEST"


@dataclass
class OriginalRecipients:
    """Recipients captured before test mode replaced them."""

    to: str | None
    cc: str | None = None
    bcc: str | None = None
    reply_to: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MessageDraft:
    """Outbound message under construction for a single item.

    Address fields hold normalized comma separated lists
    (``"a@x.com, b@x.com"``). ``warnings`` collects the non-fatal issues
    met while building the draft.
    """

    from_addr: str
    to: str
    subject: str = ""
    text_body: str | None = None
    html_body: str | None = None
    cc: str | None = None
    bcc: str | None = None
    reply_to: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    attachments: list[Attachment] = field(default_factory=list)
    priority: Priority | None = None
    in_reply_to: str | None = None
    references: list[str] = field(default_factory=list)
    date: datetime | None = None
    calendar_invite: CalendarInvite | None = None
    original_recipients: OriginalRecipients | None = None
    warnings: list[EmailSendWarning] = field(default_factory=list)

    @property
    def sender(self) -> str:
        """Bare sender address for the SMTP envelope."""
        addresses = [addr for _name, addr in getaddresses([self.from_addr]) if addr]
        return addresses[0] if addresses else self.from_addr

    @property
    def recipients(self) -> list[str]:
        """Bare envelope recipients: To, Cc and Bcc, duplicates removed."""
        values = [value for value in (self.to, self.cc, self.bcc) if value]
        seen: list[str] = []
        for _name, addr in getaddresses(values):
            if addr and addr not in seen:
                seen.append(addr)
        return seen


class Envelope(BaseModel):
    """SMTP envelope as resolved by the transport."""

    model_config = ConfigDict(populate_by_name=True)

    from_addr: Annotated[str, Field(alias="from")]
    to: Annotated[list[str], Field(default_factory=list)]


class DeliveryResult(BaseModel):
    """Transport outcome for one message.

    Attributes:
        message_id: Message-ID header of the sent message.
        envelope: Envelope sender and recipients.
        accepted: Recipients accepted by the server.
        rejected: Recipients refused by the server.
        response: Final server response line.
    """

    message_id: str
    envelope: Envelope
    accepted: Annotated[list[str], Field(default_factory=list)]
    rejected: Annotated[list[str], Field(default_factory=list)]
    response: Annotated[str, Field(default="")]

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Error and warning types raised or recorded while sending an item.

Errors abort the current item. Warnings never escalate: they are logged
and recorded on the draft so the caller can report them next to the
delivery result.
"""

from __future__ import annotations

from typing import Any


class EmailSendError(Exception):
    """Base class for failures that abort processing of one item."""

    code = "email_send_error"

    def __init__(self, message: str, *, item_index: int | None = None):
        super().__init__(message)
        self.message = message
        self.item_index = item_index


class EmailValidationError(EmailSendError):
    """Raised when an address or a required parameter is malformed."""

    code = "validation_error"

    def __init__(self, message: str, *, field: str | None = None, item_index: int | None = None):
        super().__init__(message, item_index=item_index)
        self.field = field


class InvalidHeaderFormat(EmailSendError):
    """Raised when the custom headers text is not a flat JSON object."""

    code = "invalid_header_format"


class TransportError(EmailSendError):
    """Raised when the SMTP transport fails to connect, authenticate or deliver."""

    code = "transport_error"

    def __init__(self, message: str, *, smtp_code: int | None = None, item_index: int | None = None):
        super().__init__(message, item_index=item_index)
        self.smtp_code = smtp_code


class NodeExecutionError(EmailSendError):
    """Wraps an unexpected failure while processing an item."""

    code = "node_execution_error"


class EmailSendWarning(UserWarning):
    """Non-fatal issue recorded while building a draft."""

    code = "email_send_warning"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class AttachmentResolutionWarning(EmailSendWarning):
    """A named attachment could not be read from the binary store."""

    code = "attachment_resolution"


class DateParseWarning(EmailSendWarning):
    """The custom date could not be parsed; the send time is used instead."""

    code = "date_parse"


__all__ = [
    "AttachmentResolutionWarning",
    "DateParseWarning",
    "EmailSendError",
    "EmailSendWarning",
    "EmailValidationError",
    "InvalidHeaderFormat",
    "NodeExecutionError",
    "TransportError",
]

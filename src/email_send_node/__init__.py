"""Workflow node that sends one SMTP email per input item.

This package provides the email send node and the pieces it is built from:

- Text, HTML or multipart bodies with an optional credit footer
- Custom headers supplied as a JSON object
- Attachments resolved from the host's binary data
- Cc, Bcc, Reply-To, priority, threading headers, custom Date and
  calendar invitations
- Test mode redirecting every message to a single address
- Per-item error records when the host continues on failure

Example:
    Sending the items of an in-process context::

        from email_send_node import EmailSendNode, LocalExecutionContext

        context = LocalExecutionContext(
            items=[{"json": {}}],
            parameters={"fromEmail": "me@example.com", "toEmail": "you@example.com",
                        "subject": "Hello", "html": "<p>Hi</p>"},
            credentials={"smtp": {"host": "smtp.example.com", "port": 465}},
        )
        results = await EmailSendNode().execute(context)

Authors:
    Softwell S.r.l.
"""

from .errors import (
    AttachmentResolutionWarning,
    DateParseWarning,
    EmailSendError,
    EmailSendWarning,
    EmailValidationError,
    InvalidHeaderFormat,
    NodeExecutionError,
    TransportError,
)
from .host import ExecutionContext, LocalExecutionContext, NodeExecutionData
from .models import EmailSendParameters, MessageDraft, SmtpCredentials
from .node import EmailSendNode
from .transport import SmtpTransport

__all__ = [
    "AttachmentResolutionWarning",
    "DateParseWarning",
    "EmailSendError",
    "EmailSendNode",
    "EmailSendParameters",
    "EmailSendWarning",
    "EmailValidationError",
    "ExecutionContext",
    "InvalidHeaderFormat",
    "LocalExecutionContext",
    "MessageDraft",
    "NodeExecutionData",
    "NodeExecutionError",
    "SmtpCredentials",
    "SmtpTransport",
    "TransportError",
]

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP transport built on aiosmtplib.

The transport turns a ``MessageDraft`` into an ``EmailMessage`` and sends it
over a fresh connection. Connection security follows the credential set:

- ``secure=True``: implicit TLS (typically port 465)
- ``secure=False``: plain connection, upgraded with STARTTLS when offered

Example:
    Sending a draft::

        transport = SmtpTransport(SmtpCredentials(host="smtp.example.com", port=587, secure=False))
        result = await transport.send_mail(draft)
        print(result.message_id, result.accepted)
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import format_datetime, make_msgid
from typing import Protocol

import aiosmtplib

from .attachments import guess_mime
from .errors import EmailValidationError, TransportError
from .logger import get_logger
from .models import DeliveryResult, Envelope, MessageDraft, Priority, SmtpCredentials

PRIORITY_HEADERS = {
    Priority.HIGH: {"X-Priority": "1 (Highest)", "X-MSMail-Priority": "High", "Importance": "High"},
    Priority.LOW: {"X-Priority": "5 (Lowest)", "X-MSMail-Priority": "Low", "Importance": "Low"},
}

# Exception attributes that may hold peer certificate material.
CERTIFICATE_ATTRIBUTES = ("cert", "certificate", "peer_cert", "peercert", "cert_chain")

logger = get_logger("SmtpTransport")


def _format_msgid(value: str) -> str:
    value = value.strip()
    if value.startswith("<") and value.endswith(">"):
        return value
    return f"<{value}>"


def build_email_message(draft: MessageDraft) -> EmailMessage:
    """Render a draft as an ``EmailMessage``.

    Bcc recipients are left out of the headers; they only travel in the
    SMTP envelope.
    """
    msg = EmailMessage()
    msg["From"] = draft.from_addr
    msg["To"] = draft.to
    if draft.cc:
        msg["Cc"] = draft.cc
    if draft.reply_to:
        msg["Reply-To"] = draft.reply_to
    msg["Subject"] = draft.subject
    msg["Date"] = format_datetime(draft.date or datetime.now(timezone.utc))
    domain = draft.sender.rpartition("@")[2] or None
    msg["Message-ID"] = make_msgid(domain=domain)
    if draft.in_reply_to:
        msg["In-Reply-To"] = _format_msgid(draft.in_reply_to)
    if draft.references:
        msg["References"] = " ".join(_format_msgid(ref) for ref in draft.references)
    for header, value in PRIORITY_HEADERS.get(draft.priority, {}).items():
        msg[header] = value

    has_body = False
    if draft.text_body is not None:
        msg.set_content(draft.text_body)
        has_body = True
    if draft.html_body is not None:
        if has_body:
            msg.add_alternative(draft.html_body, subtype="html")
        else:
            msg.set_content(draft.html_body, subtype="html")
        has_body = True
    invite = draft.calendar_invite
    if invite:
        params = {"method": invite.method}
        if has_body:
            msg.add_alternative(invite.content, subtype="calendar", params=params)
        else:
            msg.set_content(invite.content, subtype="calendar", params=params)
        has_body = True
    if not has_body:
        msg.set_content("")

    for header, value in draft.headers.items():
        if header in msg:
            msg.replace_header(header, value)
        else:
            msg[header] = value

    for att in draft.attachments:
        if att.mime_type and "/" in att.mime_type:
            maintype, subtype = att.mime_type.split("/", 1)
        else:
            maintype, subtype = guess_mime(att.filename)
        msg.add_attachment(
            att.content,
            maintype=maintype,
            subtype=subtype,
            filename=att.filename,
            cid=_format_msgid(att.cid),
        )
    if invite:
        msg.add_attachment(
            invite.content.encode("utf-8"),
            maintype="application",
            subtype="ics",
            filename=invite.filename,
        )
    return msg


def render_message(draft: MessageDraft) -> EmailMessage:
    """Render ``draft`` before any connection is opened.

    Raises:
        EmailValidationError: If a header value or attachment cannot be
            encoded, e.g. a subject containing a line break.
    """
    try:
        return build_email_message(draft)
    except (ValueError, TypeError) as exc:
        raise EmailValidationError(f"Message could not be rendered: {exc}", field="message") from exc


def redact_certificate(exc: BaseException) -> BaseException:
    """Strip certificate material from ``exc`` and its chained exceptions."""
    seen: set[int] = set()
    current: BaseException | None = exc
    pending: list[BaseException] = []
    while current is not None:
        if id(current) not in seen:
            seen.add(id(current))
            for attr in CERTIFICATE_ATTRIBUTES:
                if attr in vars(current):
                    delattr(current, attr)
            for chained in (current.__cause__, current.__context__):
                if chained is not None:
                    pending.append(chained)
        current = pending.pop() if pending else None
    return exc


def to_transport_error(exc: BaseException) -> TransportError:
    """Wrap a transport failure, keeping the SMTP reply code when present."""
    if isinstance(exc, TransportError):
        return exc
    redact_certificate(exc)
    smtp_code = None
    if isinstance(exc, aiosmtplib.SMTPException):
        smtp_code = getattr(exc, "smtp_code", None) or getattr(exc, "code", None)
    reason = str(exc) or type(exc).__name__
    message = f"{reason} (SMTP {smtp_code})" if smtp_code else reason
    return TransportError(message, smtp_code=smtp_code)


class MailTransport(Protocol):
    """Anything that can deliver a draft."""

    async def send_mail(
        self,
        draft: MessageDraft,
        *,
        message: EmailMessage | None = None,
        validate_certs: bool | None = None,
    ) -> DeliveryResult:
        ...


class SmtpTransport:
    """Sends drafts through an SMTP server.

    A new connection is opened for every message and closed right after.

    Args:
        credentials: SMTP connection settings.
        timeout: Timeout in seconds for connecting and for each SMTP command.
    """

    def __init__(self, credentials: SmtpCredentials, *, timeout: float = 60.0):
        self.credentials = credentials
        self.timeout = timeout

    def _client(self, validate_certs: bool | None = None) -> aiosmtplib.SMTP:
        creds = self.credentials
        validate = (True if validate_certs is None else validate_certs) and not creds.allow_unauthorized_certs
        if creds.secure:
            return aiosmtplib.SMTP(
                hostname=creds.host,
                port=creds.port,
                use_tls=True,
                start_tls=False,
                validate_certs=validate,
                timeout=self.timeout,
            )
        return aiosmtplib.SMTP(
            hostname=creds.host,
            port=creds.port,
            use_tls=False,
            start_tls=None,
            validate_certs=validate,
            timeout=self.timeout,
        )

    async def _connect(self, validate_certs: bool | None = None) -> aiosmtplib.SMTP:
        creds = self.credentials
        logger.debug(
            "Connecting to %s:%s (secure=%s, user=%s)",
            creds.host,
            creds.port,
            creds.secure,
            creds.user or "-",
        )
        smtp = self._client(validate_certs)
        await smtp.connect()
        if creds.user and creds.password:
            try:
                await smtp.login(creds.user, creds.password)
            except aiosmtplib.SMTPException:
                await self._close(smtp)
                raise
        return smtp

    async def _close(self, smtp: aiosmtplib.SMTP) -> None:
        try:
            await smtp.quit()
        except aiosmtplib.SMTPException as exc:
            logger.debug("Ignoring error while closing SMTP connection: %s", exc)

    async def send_mail(
        self,
        draft: MessageDraft,
        *,
        message: EmailMessage | None = None,
        validate_certs: bool | None = None,
    ) -> DeliveryResult:
        """Send ``draft`` and report what the server accepted.

        Args:
            draft: Message to send; supplies the envelope.
            message: ``draft`` already rendered by ``render_message``.
                Rendered here when omitted.
            validate_certs: Pass False to skip certificate verification for
                this message only.

        Raises:
            EmailValidationError: If ``message`` is omitted and the draft
                cannot be rendered. No connection is opened in that case.
            aiosmtplib.SMTPException: On connection, authentication or
                delivery failure.
        """
        if message is None:
            message = render_message(draft)
        sender = draft.sender
        recipients = draft.recipients

        smtp = await self._connect(validate_certs)
        try:
            errors, response = await smtp.send_message(message, sender=sender, recipients=recipients)
        finally:
            await self._close(smtp)

        return DeliveryResult(
            message_id=str(message["Message-ID"]),
            envelope=Envelope(from_addr=sender, to=recipients),
            accepted=[rcpt for rcpt in recipients if rcpt not in errors],
            rejected=list(errors),
            response=response,
        )

    async def verify(self) -> bool:
        """Connect and authenticate without sending anything.

        Raises:
            aiosmtplib.SMTPException: If the server cannot be reached or
                rejects the credentials.
        """
        smtp = await self._connect()
        await self._close(smtp)
        return True

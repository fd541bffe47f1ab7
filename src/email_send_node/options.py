# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Optional fields layered onto a draft.

``apply_options`` is meant to run once per draft: applying it twice appends
the credit footer twice.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from .addresses import parse_addresses
from .content import append_credits
from .errors import DateParseWarning
from .logger import get_logger
from .models import CalendarInvite, MessageDraft, SendOptions

CALENDAR_MARKER = "BEGIN:VCALENDAR"

logger = get_logger("OptionApplier")


def parse_references(value: str) -> list[str]:
    return [ref.strip() for ref in value.split(",") if ref.strip()]


def parse_date(value: str | datetime) -> datetime:
    """Parse an ISO 8601 or RFC 2822 date. Naive values are taken as UTC.

    Raises:
        ValueError: If the value matches neither format.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError, IndexError):
                raise ValueError(f"Unrecognised date: {value!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def apply_options(draft: MessageDraft, options: SendOptions) -> None:
    """Copy the optional fields onto ``draft`` in place."""
    if options.priority:
        draft.priority = options.priority

    if options.in_reply_to:
        draft.in_reply_to = options.in_reply_to

    if options.references:
        draft.references = parse_references(options.references)

    if options.date:
        try:
            draft.date = parse_date(options.date)
        except ValueError as exc:
            warning = DateParseWarning(f"Invalid date provided, using current date: {exc}")
            logger.warning(warning.message)
            draft.warnings.append(warning)

    if options.calendar_event.strip() and CALENDAR_MARKER in options.calendar_event:
        draft.calendar_invite = CalendarInvite(content=options.calendar_event)

    if options.append_credits:
        append_credits(draft)

    if options.cc_email.strip():
        draft.cc = parse_addresses(options.cc_email)
    if options.bcc_email.strip():
        draft.bcc = parse_addresses(options.bcc_email)
    if options.reply_to.strip():
        draft.reply_to = parse_addresses(options.reply_to)

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Body selection and the credit footer."""

from __future__ import annotations

from .models import EmailFormat, MessageDraft

CREDIT_TEXT = "\n\n---\nSent with email-send-node"
CREDIT_HTML = "<br><br>---<br>Sent with email-send-node"


def build_content(email_format: str, text: str, html: str) -> dict[str, str]:
    """Pick the bodies to send for the selected format.

    Unknown or empty selectors fall back to HTML only.

    Returns:
        A dict with a ``text`` and/or ``html`` key.
    """
    match email_format:
        case EmailFormat.TEXT.value:
            return {"text": text}
        case EmailFormat.BOTH.value:
            return {"text": text, "html": html}
        case _:
            return {"html": html}


def append_credits(draft: MessageDraft) -> None:
    """Append the credit footer to every non-empty body of the draft."""
    if draft.text_body:
        draft.text_body += CREDIT_TEXT
    if draft.html_body:
        draft.html_body += CREDIT_HTML

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Test mode: send every message to a single test address."""

from __future__ import annotations

from .models import MessageDraft, OriginalRecipients


def apply_test_mode(
    draft: MessageDraft,
    enabled: bool,
    test_address: str,
    subject_prefix: str,
    original_subject: str,
) -> None:
    """Redirect ``draft`` to ``test_address``.

    Does nothing unless ``enabled`` is true and ``test_address`` is not
    blank. The replaced recipients are kept in ``draft.original_recipients``.
    Cc, Bcc and Reply-To are dropped. The subject is prefixed only when the
    prefix is not blank.
    """
    if not enabled or not test_address.strip():
        return

    draft.original_recipients = OriginalRecipients(
        to=draft.to,
        cc=draft.cc,
        bcc=draft.bcc,
        reply_to=draft.reply_to,
    )

    draft.to = test_address.strip()
    draft.cc = None
    draft.bcc = None
    draft.reply_to = None

    if subject_prefix.strip():
        draft.subject = f"{subject_prefix.strip()} {original_subject}"

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Per-item draft construction.

``extract_parameters`` turns the host's loosely typed parameter bag into a
validated ``EmailSendParameters``; ``build_draft`` then runs the content,
header, attachment, option and test mode stages in that order.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from .addresses import parse_addresses
from .attachments import BinaryStore, resolve_attachments
from .content import build_content
from .errors import EmailValidationError
from .headers import parse_headers
from .host import ExecutionContext
from .models import EmailSendParameters, MessageDraft
from .options import apply_options
from .redirect import apply_test_mode


def _describe_error(error: dict[str, Any]) -> tuple[str, str]:
    field = ".".join(str(part) for part in error.get("loc", ())) or "parameters"
    if error.get("type") == "value_error":
        reason = str(error.get("ctx", {}).get("error", error.get("msg", "")))
    elif error.get("type") == "missing":
        reason = "parameter is required"
    else:
        reason = error.get("msg", "invalid value")
    return field, reason


def validate_parameters(raw: dict[str, Any], item_index: int | None = None) -> EmailSendParameters:
    """Validate a raw parameter bag.

    Raises:
        EmailValidationError: On the first invalid or missing parameter.
    """
    try:
        return EmailSendParameters.model_validate(raw)
    except ValidationError as exc:
        field, reason = _describe_error(exc.errors()[0])
        raise EmailValidationError(
            f"Invalid parameter '{field}': {reason}", field=field, item_index=item_index
        ) from None


def extract_parameters(context: ExecutionContext, item_index: int) -> EmailSendParameters:
    """Read every node parameter for one item and validate them together."""
    raw: dict[str, Any] = {}
    for name, info in EmailSendParameters.model_fields.items():
        key = info.alias or name
        value = context.get_node_parameter(key, item_index, None)
        if value is not None:
            raw[key] = value
    return validate_parameters(raw, item_index)


async def build_draft(
    params: EmailSendParameters,
    binary_store: BinaryStore,
    item_index: int,
) -> MessageDraft:
    """Build the outbound draft for one item.

    Raises:
        InvalidHeaderFormat: If custom headers are enabled but malformed.
    """
    content = build_content(params.email_format, params.text, params.html)
    draft = MessageDraft(
        from_addr=params.from_email,
        to=parse_addresses(params.to_email) or "",
        subject=params.subject,
        text_body=content.get("text"),
        html_body=content.get("html"),
    )

    if params.enable_custom_headers:
        draft.headers = parse_headers(params.custom_headers)

    if params.options.attachments.strip():
        draft.attachments = await resolve_attachments(
            params.options.attachments,
            binary_store,
            item_index,
            warnings=draft.warnings,
        )

    apply_options(draft, params.options)
    apply_test_mode(
        draft,
        params.test_mode,
        params.test_email,
        params.test_subject_prefix,
        params.subject,
    )
    return draft

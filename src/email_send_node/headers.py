# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Custom header parsing.

Headers are supplied as a JSON object, for example::

    {"List-Unsubscribe": "<mailto:unsubscribe@example.com>",
     "List-Unsubscribe-Post": "List-Unsubscribe=One-Click"}
"""

from __future__ import annotations

import json
from typing import Any

from .errors import InvalidHeaderFormat

# Describe the MIME structure built from the bodies and attachments.
STRUCTURAL_HEADERS = frozenset({"content-type", "content-transfer-encoding", "mime-version"})


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, type(None), dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def parse_headers(json_text: str) -> dict[str, str]:
    """Parse a JSON object into a flat header mapping.

    Args:
        json_text: JSON object text. Blank text means no headers.

    Returns:
        Header names mapped to string values.

    Raises:
        InvalidHeaderFormat: If the text is not a JSON object, a name or
            value contains a line break, or a name is one of
            ``STRUCTURAL_HEADERS``.
    """
    if not json_text.strip():
        return {}

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise InvalidHeaderFormat(f"Custom Headers must be valid JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise InvalidHeaderFormat(
            f"Custom Headers must be valid JSON: expected an object, got {type(parsed).__name__}"
        )

    headers = {str(name): _stringify(value) for name, value in parsed.items()}
    for name, value in headers.items():
        if any(char in name + value for char in "\r\n"):
            raise InvalidHeaderFormat(f"Header '{name.strip()}' must not contain line breaks")
        if name.strip().lower() in STRUCTURAL_HEADERS:
            raise InvalidHeaderFormat(f"Header '{name.strip()}' is set from the message body and cannot be overridden")
    return headers

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Email address validation and normalization.

The validator only checks a minimal ``local@domain.tld`` shape and a length
bound; it does not try to implement RFC 5322.

Example:
    >>> validate_address_list("a@b.com, c@d.org")
    True
    >>> parse_addresses(" a@b.com,, c@d.org ")
    'a@b.com, c@d.org'
"""

from __future__ import annotations

import re
from typing import Any

ADDRESS_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_ADDRESS_LENGTH = 254


def validate_address(address: str, *, max_length: int = MAX_ADDRESS_LENGTH, required: bool = False) -> bool:
    """Check a single address.

    Args:
        address: Candidate address, surrounding whitespace ignored.
        max_length: Maximum accepted length.
        required: Whether a blank value is an error.

    Returns:
        True if the address is valid, or blank and not required.
    """
    candidate = address.strip()
    if not candidate:
        return not required
    return bool(ADDRESS_PATTERN.match(candidate)) and len(candidate) <= max_length


def validate_address_list(value: str, *, max_length: int = MAX_ADDRESS_LENGTH, required: bool = False) -> bool:
    """Check a comma separated list of addresses.

    Every element must validate on its own, so ``"a@b.com,"`` is rejected
    because of its empty trailing element.
    """
    if not value.strip():
        return not required
    return all(
        validate_address(part, max_length=max_length, required=True)
        for part in value.split(",")
    )


def parse_addresses(value: Any) -> str | None:
    """Normalize a comma separated list to ``"a@x.com, b@x.com"``.

    Non-string input yields None.
    """
    if not isinstance(value, str):
        return None
    return ", ".join(part.strip() for part in value.split(",") if part.strip())

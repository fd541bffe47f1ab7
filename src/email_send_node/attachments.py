# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Attachment resolution from the host's binary store.

Attachments are named by binary property ("data, invoice"). Each name is
looked up for the current item; names that cannot be resolved are skipped
with a warning so that one missing file never blocks the message.

The ``ItemBinaryStore`` implementation reads binary entries in the host's
item format, where each property is either inline base64 or a file path::

    {"binary": {
        "invoice": {"fileName": "invoice.pdf", "mimeType": "application/pdf",
                    "data": "JVBERi0xLjQK..."},
        "logo": {"fileName": "logo.png", "path": "assets/logo.png"}
    }}
"""

from __future__ import annotations

import asyncio
import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence

from .errors import AttachmentResolutionWarning, EmailSendWarning
from .logger import get_logger
from .models import Attachment

logger = get_logger("AttachmentResolver")


@dataclass
class BinaryData:
    """Binary payload returned by a store lookup."""

    data: bytes
    file_name: str | None = None
    mime_type: str | None = None


class BinaryDataNotFound(LookupError):
    """Raised when an item has no binary data under the requested property."""


class BinaryStore(Protocol):
    """Read-only access to the binary payloads attached to input items."""

    async def get_binary(self, item_index: int, property_name: str) -> BinaryData:
        ...


def decode_base64(content: str) -> bytes:
    """Decode base64 content, tolerating missing padding.

    Raises:
        ValueError: If the content is not valid base64.
    """
    try:
        content = content.strip()
        padding_needed = 4 - (len(content) % 4)
        if padding_needed != 4:
            content += "=" * padding_needed
        return base64.b64decode(content, validate=True)
    except Exception as e:
        raise ValueError(f"Invalid base64 content: {e}") from e


class ItemBinaryStore:
    """Binary store over the ``binary`` section of host items.

    Args:
        items: Host items; each may carry a ``binary`` mapping.
        base_dir: Directory for relative ``path`` entries. Paths resolving
            outside of it are refused.
    """

    def __init__(self, items: Sequence[dict[str, Any]], base_dir: str | None = None):
        self._items = items
        self._base_dir: Path | None = Path(base_dir).resolve() if base_dir else None

    async def get_binary(self, item_index: int, property_name: str) -> BinaryData:
        try:
            entry = (self._items[item_index].get("binary") or {})[property_name]
        except (IndexError, KeyError):
            raise BinaryDataNotFound(
                f"Item {item_index} has no binary property '{property_name}'"
            ) from None

        if entry.get("data") is not None:
            data = decode_base64(entry["data"])
        elif entry.get("path"):
            resolved = self._resolve_path(entry["path"])
            data = await asyncio.to_thread(resolved.read_bytes)
        else:
            raise ValueError(f"Binary property '{property_name}' has neither data nor path")

        return BinaryData(
            data=data,
            file_name=entry.get("fileName"),
            mime_type=entry.get("mimeType"),
        )

    def _resolve_path(self, path: str) -> Path:
        path_obj = Path(path)

        if path_obj.is_absolute():
            resolved = path_obj.resolve()
        elif self._base_dir:
            resolved = (self._base_dir / path_obj).resolve()
        else:
            resolved = path_obj.resolve()

        if self._base_dir:
            try:
                resolved.relative_to(self._base_dir)
            except ValueError:
                raise ValueError(
                    f"Path traversal detected: '{path}' resolves outside base directory"
                ) from None

        if not resolved.is_file():
            raise FileNotFoundError(f"File not found: {resolved}")

        return resolved


def split_property_names(names_csv: str) -> list[str]:
    return [name.strip() for name in names_csv.split(",") if name.strip()]


async def resolve_attachments(
    names_csv: str,
    binary_store: BinaryStore,
    item_index: int,
    warnings: list[EmailSendWarning] | None = None,
) -> list[Attachment]:
    """Resolve comma separated binary property names into attachments.

    Args:
        names_csv: Property names, e.g. ``"data, invoice"``.
        binary_store: Store to read the payloads from.
        item_index: Index of the item being processed.
        warnings: Optional list receiving one warning per unresolved name.

    Returns:
        Attachments in the order the names were given. The content id is the
        property name, so HTML bodies can reference ``cid:<name>``.
    """
    attachments: list[Attachment] = []
    for property_name in split_property_names(names_csv):
        try:
            binary = await binary_store.get_binary(item_index, property_name)
        except Exception as exc:
            warning = AttachmentResolutionWarning(
                f"Failed to process attachment '{property_name}': {exc}"
            )
            logger.warning("Item %d: %s", item_index, warning.message)
            if warnings is not None:
                warnings.append(warning)
            continue
        attachments.append(
            Attachment(
                filename=binary.file_name or property_name,
                content=binary.data,
                cid=property_name,
                mime_type=binary.mime_type,
            )
        )
    return attachments


def guess_mime(filename: str) -> tuple[str, str]:
    """Determine the MIME type for a filename based on its extension."""
    mt, _ = mimetypes.guess_type(filename)
    if not mt:
        return ("application", "octet-stream")
    return tuple(mt.split("/", 1))  # type: ignore[return-value]

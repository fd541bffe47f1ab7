# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Interfaces to the workflow host.

The node only talks to the host through ``ExecutionContext``: it reads
input items and node parameters, fetches the "smtp" credential set once per
execution, and asks whether failing items should be recorded instead of
aborting the batch.

``LocalExecutionContext`` implements the interface in-process from plain
data. It backs the CLI and the tests.

Example:
    Running the node without a host::

        context = LocalExecutionContext(
            items=[{"json": {}}],
            parameters={"fromEmail": "me@example.com", "toEmail": "you@example.com"},
            credentials={"smtp": {"host": "smtp.example.com", "port": 587, "secure": False}},
        )
        results = await EmailSendNode().execute(context)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from .attachments import BinaryStore, ItemBinaryStore


class ParameterNotFound(LookupError):
    """Raised when a parameter is absent and no default was given."""


_NO_DEFAULT: Any = object()


@dataclass
class NodeExecutionData:
    """One output record, paired with the input item it came from."""

    json: dict[str, Any]
    paired_item: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"json": self.json, "paired_item": {"item": self.paired_item}}


class ExecutionContext(Protocol):
    """What the node needs from the host for one execution."""

    binary_store: BinaryStore

    def get_input_data(self) -> Sequence[dict[str, Any]]:
        ...

    def get_node_parameter(self, name: str, item_index: int, default: Any = _NO_DEFAULT) -> Any:
        ...

    async def get_credentials(self, name: str) -> dict[str, Any]:
        ...

    def continue_on_fail(self) -> bool:
        ...


@dataclass
class LocalExecutionContext:
    """In-process execution context built from plain data.

    Attributes:
        items: Host items (``{"json": ..., "binary": ..., "parameters": ...}``).
            An item's ``parameters`` override node parameters for that item.
        parameters: Node parameters shared by all items.
        credentials: Credential sets by name, e.g. ``{"smtp": {...}}``.
        fail_soft: Record failing items instead of aborting the batch.
        base_dir: Base directory for binary entries given by relative path.
    """

    items: Sequence[dict[str, Any]]
    parameters: dict[str, Any] = field(default_factory=dict)
    credentials: dict[str, dict[str, Any]] = field(default_factory=dict)
    fail_soft: bool = False
    base_dir: str | None = None
    binary_store: BinaryStore = field(init=False)

    def __post_init__(self) -> None:
        self.binary_store = ItemBinaryStore(self.items, base_dir=self.base_dir)

    def get_input_data(self) -> Sequence[dict[str, Any]]:
        return self.items

    def get_node_parameter(self, name: str, item_index: int, default: Any = _NO_DEFAULT) -> Any:
        overrides = self.items[item_index].get("parameters") or {}
        if name in overrides:
            return overrides[name]
        if name in self.parameters:
            return self.parameters[name]
        if default is _NO_DEFAULT:
            raise ParameterNotFound(f"Could not get parameter '{name}'")
        return default

    async def get_credentials(self, name: str) -> dict[str, Any]:
        try:
            return self.credentials[name]
        except KeyError:
            raise ParameterNotFound(f"Node does not have credentials for '{name}'") from None

    def continue_on_fail(self) -> bool:
        return self.fail_soft

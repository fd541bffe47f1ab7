# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Email send node: one SMTP message per input item.

Items are processed one at a time in input order. For each item the node
extracts and validates its parameters, builds a draft, and hands it to the
transport. A failing item either aborts the whole batch or, when the host
runs the node with "continue on failure", produces an ``{"error": ...}``
record while the remaining items are still sent.

Example:
    Executing the node with an in-process context::

        from email_send_node.host import LocalExecutionContext
        from email_send_node.node import EmailSendNode

        context = LocalExecutionContext(items=items, parameters=params,
                                        credentials={"smtp": smtp})
        results = await EmailSendNode().execute(context)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from .builder import build_draft, extract_parameters
from .errors import EmailSendError, EmailValidationError, NodeExecutionError
from .host import ExecutionContext, NodeExecutionData
from .logger import get_logger
from .models import DeliveryResult, MessageDraft, SmtpCredentials
from .transport import MailTransport, SmtpTransport, render_message, to_transport_error

CREDENTIAL_NAME = "smtp"


async def dispatch(
    transport: MailTransport,
    draft: MessageDraft,
    *,
    validate_certs: bool | None = None,
) -> DeliveryResult:
    """Render one draft, then send it.

    Raises:
        EmailValidationError: If the draft cannot be rendered. The transport
            is never called in that case.
        TransportError: If the transport fails. Certificate material carried
            by the original exception is removed first.
    """
    message = render_message(draft)
    try:
        return await transport.send_mail(draft, message=message, validate_certs=validate_certs)
    except Exception as exc:
        raise to_transport_error(exc) from exc


class EmailSendNode:
    """Sends one email per input item through the "smtp" credential set.

    Args:
        transport_factory: Builds the transport from the credentials. Called
            once per execution.
    """

    def __init__(self, transport_factory: Callable[[SmtpCredentials], MailTransport] = SmtpTransport):
        self._transport_factory = transport_factory
        self.logger = get_logger("EmailSendNode")

    async def _load_credentials(self, context: ExecutionContext) -> SmtpCredentials:
        raw = await context.get_credentials(CREDENTIAL_NAME)
        try:
            return SmtpCredentials.model_validate(raw)
        except ValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(part) for part in error.get("loc", ()))
            raise EmailValidationError(
                f"Invalid '{CREDENTIAL_NAME}' credentials: {field} {error.get('msg', '')}".strip(),
                field=field,
            ) from None

    async def _process_item(
        self,
        context: ExecutionContext,
        transport: MailTransport,
        item_index: int,
    ) -> dict[str, Any]:
        params = extract_parameters(context, item_index)
        draft = await build_draft(params, context.binary_store, item_index)
        self.logger.info(
            "Sending item %d to %s%s",
            item_index,
            draft.to,
            " (test mode)" if draft.original_recipients else "",
        )
        validate_certs = False if params.options.allow_unauthorized_certs else None
        result = await dispatch(transport, draft, validate_certs=validate_certs)
        self.logger.info("Item %d delivered as %s", item_index, result.message_id)

        record = result.model_dump(by_alias=True)
        record["test_mode"] = params.test_mode
        if draft.original_recipients:
            record["original_recipients"] = draft.original_recipients.to_dict()
        record["warnings"] = [warning.to_dict() for warning in draft.warnings]
        return record

    async def execute(self, context: ExecutionContext) -> list[NodeExecutionData]:
        """Send every input item and return one record per item.

        Raises:
            EmailSendError: The first failing item's error, tagged with its
                ``item_index``, unless the context continues on failure.
        """
        items = context.get_input_data()
        credentials = await self._load_credentials(context)
        transport = self._transport_factory(credentials)

        results: list[NodeExecutionData] = []
        failures = 0
        for item_index in range(len(items)):
            try:
                record = await self._process_item(context, transport, item_index)
            except Exception as exc:
                if context.continue_on_fail():
                    failures += 1
                    self.logger.warning("Item %d failed, continuing: %s", item_index, exc)
                    results.append(NodeExecutionData(json={"error": str(exc)}, paired_item=item_index))
                    continue
                self.logger.error("Item %d failed, aborting: %s", item_index, exc)
                if isinstance(exc, EmailSendError):
                    exc.item_index = item_index
                    raise
                raise NodeExecutionError(str(exc), item_index=item_index) from exc
            results.append(NodeExecutionData(json=record, paired_item=item_index))

        self.logger.info(
            "Processed %d item(s): %d sent, %d failed",
            len(items),
            len(items) - failures,
            failures,
        )
        return results

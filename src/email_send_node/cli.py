# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for email-send-node.

Runs the node outside a workflow host, using SMTP credentials from
config.ini or ESN_* environment variables.

Usage:
    email-send send items.json --params params.json
    email-send send items.json --params params.json --continue-on-fail --json
    email-send verify --config config.ini
    email-send check-addresses "a@example.com, b@example.com"

Example:
    params.json holds the node parameters::

        {"fromEmail": "news@example.com", "toEmail": "reader@example.com",
         "subject": "Hello", "emailFormat": "both",
         "text": "Hi!", "html": "<p>Hi!</p>",
         "testMode": true, "testEmail": "qa@example.com"}

    items.json holds the input items; per-item ``parameters`` override the
    node parameters::

        [{"json": {}, "parameters": {"toEmail": "first@example.com"}},
         {"json": {}, "binary": {"data": {"fileName": "a.pdf", "path": "a.pdf"}},
          "parameters": {"options": {"attachments": "data"}}}]
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .addresses import parse_addresses, validate_address_list
from .config_loader import load_settings
from .errors import EmailSendError
from .host import LocalExecutionContext, NodeExecutionData
from .node import CREDENTIAL_NAME, EmailSendNode
from .transport import SmtpTransport, to_transport_error

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}")


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    console.print_json(json.dumps(data, indent=2, default=str))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _load_settings_or_exit(config_path: str | None) -> dict[str, Any]:
    try:
        return load_settings(config_path)
    except (FileNotFoundError, ValueError) as e:
        print_error(str(e))
        sys.exit(1)


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        print_error(f"{path} is not valid UTF-8 JSON: {e}")
        sys.exit(1)


def _print_results(results: list[NodeExecutionData]) -> None:
    table = Table(title="Delivery results")
    table.add_column("Item", justify="right")
    table.add_column("Status")
    table.add_column("Message-ID / Error")
    table.add_column("Recipients")
    table.add_column("Warnings", justify="right")

    for result in results:
        data = result.json
        if "error" in data:
            table.add_row(str(result.paired_item), "[red]error[/red]", escape(data["error"]), "-", "-")
            continue
        status = "[yellow]sent (test)[/yellow]" if data.get("original_recipients") else "[green]sent[/green]"
        table.add_row(
            str(result.paired_item),
            status,
            data.get("message_id", ""),
            ", ".join(data.get("accepted", [])),
            str(len(data.get("warnings", []))),
        )

    console.print(table)


@click.group()
@click.version_option(package_name="email-send-node")
def main() -> None:
    """email-send: send SMTP messages the way the workflow node does."""


@main.command("send")
@click.argument("items_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--params", "-p", "params_file", required=True,
              type=click.Path(exists=True, dir_okay=False), help="JSON file with node parameters.")
@click.option("--config", "-c", "config_path", default=None,
              type=click.Path(dir_okay=False), help="INI file with the [smtp] section.")
@click.option("--base-dir", default=None, type=click.Path(file_okay=False),
              help="Directory for relative binary paths (default: the items file directory).")
@click.option("--continue-on-fail", is_flag=True, help="Record failing items and keep going.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def send_cmd(items_file: str, params_file: str, config_path: str | None,
             base_dir: str | None, continue_on_fail: bool, as_json: bool) -> None:
    """Send one email per item in ITEMS_FILE.

    Example:

        email-send send items.json --params params.json

        email-send send items.json -p params.json --continue-on-fail --json
    """
    settings = _load_settings_or_exit(config_path)
    configure_logging(settings["log_level"])

    items = _read_json(items_file)
    if isinstance(items, dict):
        items = [items]
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        print_error("Items file must contain a JSON object or a list of objects.")
        sys.exit(1)
    parameters = _read_json(params_file)
    if not isinstance(parameters, dict):
        print_error("Parameters file must contain a JSON object.")
        sys.exit(1)

    context = LocalExecutionContext(
        items=items,
        parameters=parameters,
        credentials={CREDENTIAL_NAME: settings["credentials"].model_dump(by_alias=True)},
        fail_soft=continue_on_fail or settings["continue_on_fail"],
        base_dir=base_dir or str(Path(items_file).resolve().parent),
    )
    timeout = settings["transport_timeout"]
    node = EmailSendNode(transport_factory=lambda creds: SmtpTransport(creds, timeout=timeout))

    try:
        results = run_async(node.execute(context))
    except EmailSendError as e:
        prefix = f"Item {e.item_index}: " if e.item_index is not None else ""
        print_error(f"{prefix}{e.message}")
        sys.exit(1)

    if as_json:
        print_json([result.to_dict() for result in results])
    else:
        _print_results(results)


@main.command("verify")
@click.option("--config", "-c", "config_path", default=None,
              type=click.Path(dir_okay=False), help="INI file with the [smtp] section.")
def verify_cmd(config_path: str | None) -> None:
    """Check that the SMTP server accepts the configured credentials."""
    settings = _load_settings_or_exit(config_path)
    configure_logging(settings["log_level"])
    credentials = settings["credentials"]
    transport = SmtpTransport(credentials, timeout=settings["transport_timeout"])

    try:
        run_async(transport.verify())
    except Exception as e:
        print_error(f"Connection to {credentials.host}:{credentials.port} failed: {to_transport_error(e).message}")
        sys.exit(1)

    print_success(f"Connected to {credentials.host}:{credentials.port}")


@main.command("check-addresses")
@click.argument("value")
@click.option("--required", is_flag=True, help="Treat an empty value as invalid.")
def check_addresses_cmd(value: str, required: bool) -> None:
    """Validate a comma separated address list."""
    if not validate_address_list(value, required=required):
        print_error(f"Invalid address list: {value!r}")
        sys.exit(1)
    print_success(parse_addresses(value) or "(empty)")


if __name__ == "__main__":
    main()

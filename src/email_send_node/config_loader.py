# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for running the node outside a workflow host.

Settings come from an INI file with environment variables as fallbacks.

Environment variables (all prefixed with ESN_):
  ESN_CONFIG - Path to config.ini file (default: config.ini)
  ESN_LOG_LEVEL - Logging level (default: INFO)
  ESN_SMTP_HOST - SMTP server hostname
  ESN_SMTP_PORT - SMTP server port (default: 465)
  ESN_SMTP_SECURE - Use implicit TLS (default: True)
  ESN_SMTP_USER - SMTP username
  ESN_SMTP_PASSWORD - SMTP password
  ESN_SMTP_ALLOW_UNAUTHORIZED_CERTS - Skip certificate checks (default: False)
  ESN_SMTP_TIMEOUT - Connection and command timeout in seconds (default: 60)
  ESN_CONTINUE_ON_FAIL - Record failing items instead of aborting (default: False)

Example:
    Configuration file format (config.ini)::

        [smtp]
        host = smtp.example.com
        port = 587
        secure = false
        user = mailer@example.com
        password = secret
        allow_unauthorized_certs = false
        timeout = 30

        [node]
        continue_on_fail = true

        [logging]
        level = DEBUG
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any

from .logger import get_logger
from .models import SmtpCredentials

DEFAULT_CONFIG_PATH = "config.ini"

logger = get_logger("ConfigLoader")


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    logger.warning(f"Invalid boolean {value!r}, using default {default}")
    return default


def _read_config(config_path: str | None) -> configparser.ConfigParser:
    parser = configparser.ConfigParser()
    if config_path is not None:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        parser.read(config_path)
        return parser
    default_path = Path(os.getenv("ESN_CONFIG", DEFAULT_CONFIG_PATH))
    if default_path.exists():
        parser.read(default_path)
    return parser


def load_settings(config_path: str | None = None) -> dict[str, Any]:
    """Load credentials and runtime settings.

    Args:
        config_path: Explicit INI file. When omitted, ``ESN_CONFIG`` (or
            ``config.ini``) is read if it exists.

    Returns:
        Dict with ``credentials`` (SmtpCredentials), ``transport_timeout``,
        ``log_level`` and ``continue_on_fail``.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` does not exist.
        ValueError: If no SMTP host is configured or a number is malformed.
    """
    parser = _read_config(config_path)

    def get(section: str, option: str, fallback: str | None = None) -> str | None:
        if parser.has_option(section, option):
            return parser.get(section, option)
        return fallback

    host = get("smtp", "host", os.getenv("ESN_SMTP_HOST"))
    if not host or not host.strip():
        raise ValueError("SMTP host is not configured ([smtp] host or ESN_SMTP_HOST)")

    credentials = SmtpCredentials(
        host=host.strip(),
        port=int(get("smtp", "port", os.getenv("ESN_SMTP_PORT", "465"))),
        secure=_parse_bool(get("smtp", "secure", os.getenv("ESN_SMTP_SECURE")), True),
        user=get("smtp", "user", os.getenv("ESN_SMTP_USER")) or None,
        password=get("smtp", "password", os.getenv("ESN_SMTP_PASSWORD")) or None,
        allow_unauthorized_certs=_parse_bool(
            get("smtp", "allow_unauthorized_certs", os.getenv("ESN_SMTP_ALLOW_UNAUTHORIZED_CERTS")),
            False,
        ),
    )

    return {
        "credentials": credentials,
        "transport_timeout": float(get("smtp", "timeout", os.getenv("ESN_SMTP_TIMEOUT", "60"))),
        "log_level": (get("logging", "level", os.getenv("ESN_LOG_LEVEL", "INFO")) or "INFO").upper(),
        "continue_on_fail": _parse_bool(
            get("node", "continue_on_fail", os.getenv("ESN_CONTINUE_ON_FAIL")),
            False,
        ),
    }


def load_credentials(config_path: str | None = None) -> SmtpCredentials:
    """Convenience wrapper returning only the SMTP credentials."""
    return load_settings(config_path)["credentials"]

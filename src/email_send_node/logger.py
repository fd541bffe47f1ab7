"""Loggers for the email send node.

Every logger lives under the ``email_send_node`` namespace, so a host can
tune or silence the whole node with one call::

    logging.getLogger("email_send_node").setLevel(logging.WARNING)

Handlers are left to the host. The standalone CLI installs its own with
``logging.basicConfig()``.
"""

import logging

ROOT_LOGGER_NAME = "email_send_node"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the node's logger for ``component``.

    ``get_logger("SmtpTransport")`` yields ``email_send_node.SmtpTransport``;
    without a component the namespace root is returned.
    """
    if not component:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")

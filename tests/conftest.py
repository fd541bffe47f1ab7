import pytest

from email_send_node.models import DeliveryResult, Envelope


class DummyTransport:
    """Records drafts and fails for the recipients listed in ``fail_for``."""

    def __init__(self, credentials=None, fail_for=()):
        self.credentials = credentials
        self.fail_for = fail_for
        self.sent = []

    async def send_mail(self, draft, *, message=None, validate_certs=None):
        if draft.to in self.fail_for:
            raise ConnectionRefusedError(f"Connection refused for {draft.to}")
        self.sent.append((draft, validate_certs))
        recipients = draft.recipients
        return DeliveryResult(
            message_id=f"<{len(self.sent)}@test.local>",
            envelope=Envelope(from_addr=draft.sender, to=recipients),
            accepted=recipients,
            response="250 OK queued",
        )


@pytest.fixture
def smtp_credentials():
    return {
        "host": "smtp.example.com",
        "port": 587,
        "secure": False,
        "user": "mailer@example.com",
        "password": "secret",
    }


@pytest.fixture
def base_parameters():
    return {
        "fromEmail": "news@example.com",
        "toEmail": "reader@example.com",
        "subject": "Hello",
        "emailFormat": "html",
        "html": "<p>Hello</p>",
    }


@pytest.fixture
def transport_factory():
    """Usable as ``transport_factory``.

    ``transport_factory.created`` lists the transports built so far and
    ``transport_factory.fail_for`` holds the To values that should fail.
    """
    created = []
    fail_for = set()

    def factory(credentials):
        transport = DummyTransport(credentials, fail_for=fail_for)
        created.append(transport)
        return transport

    factory.created = created
    factory.fail_for = fail_for
    return factory

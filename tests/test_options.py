"""Tests for the optional fields applied to a draft."""

from datetime import datetime, timedelta, timezone

import pytest

from email_send_node.content import CREDIT_HTML, CREDIT_TEXT
from email_send_node.errors import DateParseWarning
from email_send_node.models import MessageDraft, Priority, SendOptions
from email_send_node.options import apply_options, parse_date, parse_references


def make_draft(**kwargs):
    defaults = {"from_addr": "sender@example.com", "to": "rcpt@example.com"}
    defaults.update(kwargs)
    return MessageDraft(**defaults)


class TestParseDate:
    """Tests for custom date parsing."""

    def test_iso_with_z_suffix(self):
        assert parse_date("2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)

    def test_iso_with_offset(self):
        parsed = parse_date("2024-03-01T10:30:00+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_naive_is_utc(self):
        assert parse_date("2024-03-01 10:30").tzinfo == timezone.utc

    def test_rfc2822(self):
        parsed = parse_date("Fri, 01 Mar 2024 10:30:00 +0000")
        assert parsed == datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)

    def test_datetime_passthrough(self):
        value = datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert parse_date(value) is value

    def test_garbage(self):
        with pytest.raises(ValueError, match="Unrecognised date"):
            parse_date("next tuesday-ish")


def test_parse_references():
    assert parse_references("<a@x>, ,<b@x>,") == ["<a@x>", "<b@x>"]


def test_threading_and_priority_copied():
    draft = make_draft()
    options = SendOptions(priority="high", inReplyTo="<orig@example.com>", references="<r1@x>, <r2@x>")

    apply_options(draft, options)

    assert draft.priority is Priority.HIGH
    assert draft.in_reply_to == "<orig@example.com>"
    assert draft.references == ["<r1@x>", "<r2@x>"]


def test_address_options_normalized():
    draft = make_draft()
    options = SendOptions(ccEmail="c1@x.com,c2@x.com", bccEmail=" b@x.com ", replyTo="r@x.com")

    apply_options(draft, options)

    assert draft.cc == "c1@x.com, c2@x.com"
    assert draft.bcc == "b@x.com"
    assert draft.reply_to == "r@x.com"


def test_blank_address_options_ignored():
    draft = make_draft(cc="keep@x.com")

    apply_options(draft, SendOptions(ccEmail="   "))

    assert draft.cc == "keep@x.com"
    assert draft.bcc is None


def test_valid_date_set():
    draft = make_draft()

    apply_options(draft, SendOptions(date="2024-03-01T10:30:00Z"))

    assert draft.date == datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)
    assert draft.warnings == []


def test_invalid_date_records_warning():
    draft = make_draft()

    apply_options(draft, SendOptions(date="not a date"))

    assert draft.date is None
    assert len(draft.warnings) == 1
    assert isinstance(draft.warnings[0], DateParseWarning)
    assert draft.warnings[0].to_dict()["code"] == "date_parse"


def test_calendar_requires_marker():
    draft = make_draft()
    apply_options(draft, SendOptions(calendarEvent="random text"))
    assert draft.calendar_invite is None


def test_calendar_invite_attached():
    ics = "BEGIN:VCALENDAR\nVERSION:2.0\nEND:VCALENDAR"
    draft = make_draft()

    apply_options(draft, SendOptions(calendarEvent=ics))

    assert draft.calendar_invite is not None
    assert draft.calendar_invite.filename == "event.ics"
    assert draft.calendar_invite.method == "REQUEST"
    assert draft.calendar_invite.content == ics


def test_credits_single_application():
    draft = make_draft(text_body="Hi", html_body="<p>Hi</p>")

    apply_options(draft, SendOptions(appendCredits=True))

    assert draft.text_body == "Hi" + CREDIT_TEXT
    assert draft.html_body == "<p>Hi</p>" + CREDIT_HTML


def test_credits_appended_again_on_second_application():
    draft = make_draft(text_body="Hi")
    options = SendOptions(appendCredits=True)

    apply_options(draft, options)
    apply_options(draft, options)

    assert draft.text_body == "Hi" + CREDIT_TEXT + CREDIT_TEXT

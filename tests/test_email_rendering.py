from datetime import datetime, timezone

import pytest

from contact_relay.core.email_sender import format_display_time, render_email, utc_timestamp
from contact_relay.models.contact import Submission


def test_subject_names_the_submitter(submission, settings, fixed_now):
    rendered = render_email(submission, settings, now=fixed_now)

    assert rendered.subject == "New Contact Form Submission from Jane Doe"


def test_plain_text_body(submission, settings, fixed_now):
    rendered = render_email(submission, settings, now=fixed_now)

    assert rendered.text_body == (
        "New contact form submission from the Acme Consulting website:\n"
        "\n"
        "Name: Jane Doe\n"
        "Email: jane@example.com\n"
        "Service Interested In: Consulting\n"
        "\n"
        "Message:\n"
        "Hello there\nSecond line\n"
        "\n"
        "---\n"
        "Submitted at: 2024-01-15T20:04:05.123Z"
    )


def test_html_body_fields(submission, settings, fixed_now):
    html = render_email(submission, settings, now=fixed_now).html_body

    assert html.startswith("<!DOCTYPE html>")
    assert html.endswith("</html>")
    assert '<span class="label">Name:</span> Jane Doe' in html
    assert '<a href="mailto:jane@example.com">jane@example.com</a>' in html
    assert '<span class="label">Service Interested In:</span> Consulting' in html
    assert '<div class="message-box">Hello there<br>Second line</div>' in html
    assert "Submitted at: 1/15/2024, 3:04:05 PM ET" in html


def test_reply_to_is_the_submitter(submission, settings, fixed_now):
    rendered = render_email(submission, settings, now=fixed_now)

    assert rendered.reply_to_name == "Jane Doe"
    assert rendered.reply_to_email == "jane@example.com"


def test_rendering_is_deterministic(submission, settings, fixed_now):
    first = render_email(submission, settings, now=fixed_now)
    second = render_email(submission, settings, now=fixed_now)

    assert first == second


def test_missing_service_renders_not_specified(settings, fixed_now):
    submission = Submission(name="Sam", email="sam@example.com", message="Hi", service="")

    rendered = render_email(submission, settings, now=fixed_now)

    assert "Service Interested In: Not specified" in rendered.text_body
    assert '<span class="label">Service Interested In:</span> Not specified' in rendered.html_body


def test_missing_timestamp_falls_back_to_render_time(settings, fixed_now):
    submission = Submission(name="Sam", email="sam@example.com", message="Hi")

    rendered = render_email(submission, settings, now=fixed_now)

    assert rendered.text_body.endswith("Submitted at: 2024-01-15T20:04:05.000Z")


@pytest.mark.parametrize(
    "moment, expected",
    [
        (datetime(2024, 1, 15, 20, 4, 5, tzinfo=timezone.utc), "1/15/2024, 3:04:05 PM"),
        (datetime(2024, 7, 4, 4, 0, 0, tzinfo=timezone.utc), "7/4/2024, 12:00:00 AM"),
        (datetime(2024, 7, 4, 16, 30, 9, tzinfo=timezone.utc), "7/4/2024, 12:30:09 PM"),
        (datetime(2024, 12, 31, 14, 5, 0, tzinfo=timezone.utc), "12/31/2024, 9:05:00 AM"),
    ],
)
def test_display_time_uses_eastern_clock(moment, expected):
    assert format_display_time(moment, "America/New_York") == expected


def test_utc_timestamp_format():
    moment = datetime(2024, 3, 9, 8, 7, 6, 543210, tzinfo=timezone.utc)

    assert utc_timestamp(moment) == "2024-03-09T08:07:06.543Z"

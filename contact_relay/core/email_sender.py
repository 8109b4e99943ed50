"""
Email Sender stage.

Renders a sanitized submission into a subject, a plain-text body and an HTML
body, then hands the result to the configured delivery channel. The same
rendering feeds every channel so the relay and API strategies produce
identical content.

The gateway talks to this stage either in-process (EmailSender) or over HTTP
(RemoteEmailSender) when the sender runs as a separate deployment.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import httpx

from contact_relay.core.config import Settings
from contact_relay.core.delivery import (
    ApiDeliveryChannel,
    DeliveryChannel,
    RelayDeliveryChannel,
    SMTPRelay,
)
from contact_relay.core.errors import ConfigurationError, DeliveryFailed
from contact_relay.models.contact import DEFAULT_SERVICE, RenderedEmail, Submission

logger = logging.getLogger(__name__)

EMAIL_SENDER_SECRET_HEADER = "X-Email-Sender-Secret"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC instant with millisecond precision, e.g. 2024-01-15T20:04:05.123Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_display_time(now: datetime, tz_name: str) -> str:
    """Format like an en-US locale clock: 1/15/2024, 3:04:05 PM"""
    local = now.astimezone(ZoneInfo(tz_name))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local:%M:%S} {meridiem}"


def render_email(submission: Submission, settings: Settings, now: Optional[datetime] = None) -> RenderedEmail:
    """
    Render the notification email for a submission.

    Args:
        submission: Sanitized submission
        settings: Deployment configuration
        now: Clock used for the HTML footer (defaults to the current time)

    Returns:
        RenderedEmail: subject, plain-text body and HTML body
    """
    now = now or datetime.now(timezone.utc)
    name = submission.name
    email = submission.email
    service = submission.service or DEFAULT_SERVICE
    message = submission.message
    submitted_at = submission.timestamp or utc_timestamp(now)

    subject = f"New Contact Form Submission from {name}"

    text_body = f"""
New contact form submission from the {settings.contact_to_name} website:

Name: {name}
Email: {email}
Service Interested In: {service}

Message:
{message}

---
Submitted at: {submitted_at}
    """.strip()

    html_message = message.replace("\n", "<br>")
    display_time = format_display_time(now, settings.display_timezone)

    html_body = f"""
<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: #132853; color: #D2AE6A; padding: 20px; border-radius: 8px 8px 0 0; }}
    .content {{ background: #f9f9f9; padding: 20px; border: 1px solid #ddd; }}
    .field {{ margin-bottom: 15px; }}
    .label {{ font-weight: bold; color: #132853; }}
    .message-box {{ background: white; padding: 15px; border-left: 4px solid #D2AE6A; margin-top: 10px; }}
    .footer {{ font-size: 12px; color: #666; margin-top: 20px; padding-top: 15px; border-top: 1px solid #ddd; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h2 style="margin: 0;">New Contact Form Submission</h2>
    </div>
    <div class="content">
      <div class="field">
        <span class="label">Name:</span> {name}
      </div>
      <div class="field">
        <span class="label">Email:</span> <a href="mailto:{email}">{email}</a>
      </div>
      <div class="field">
        <span class="label">Service Interested In:</span> {service}
      </div>
      <div class="field">
        <span class="label">Message:</span>
        <div class="message-box">{html_message}</div>
      </div>
      <div class="footer">
        Submitted at: {display_time} ET
      </div>
    </div>
  </div>
</body>
</html>
    """.strip()

    return RenderedEmail(
        subject=subject,
        text_body=text_body,
        html_body=html_body,
        reply_to_name=name,
        reply_to_email=email,
    )


class EmailSender:
    """Renders submissions and dispatches them through one delivery channel"""

    def __init__(self, settings: Settings, channel: DeliveryChannel):
        self.settings = settings
        self.channel = channel

    async def send(self, submission: Submission) -> None:
        if not submission.timestamp:
            submission = submission.model_copy(update={"timestamp": utc_timestamp()})

        rendered = render_email(submission, self.settings)
        await self.channel.deliver(rendered)
        logger.info(f"✅ Contact email from {submission.email} delivered via {self.channel.name}")


class RemoteEmailSender:
    """Forwards sanitized submissions to an Email Sender running elsewhere"""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.url = settings.email_sender_url
        self._transport = transport

    async def send(self, submission: Submission) -> None:
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.post(
                self.url,
                json=submission.model_dump(),
                headers={
                    "Content-Type": "application/json",
                    EMAIL_SENDER_SECRET_HEADER: self.settings.email_sender_secret,
                },
                timeout=self.settings.http_timeout,
            )

        if not response.is_success:
            logger.error(f"Email sender returned error: {response.status_code} {response.text}")
            raise DeliveryFailed(f"Email sender responded with HTTP {response.status_code}")

        logger.info(f"✅ Contact email from {submission.email} handed to remote email sender")


def build_channel(settings: Settings) -> DeliveryChannel:
    """Create the delivery channel selected by DELIVERY_CHANNEL"""
    channel = settings.delivery_channel.strip().lower()

    if channel == "api":
        if not settings.email_api_url:
            raise ConfigurationError("EMAIL_API_URL must be set for the api delivery channel")
        return ApiDeliveryChannel(settings)

    if channel == "relay":
        if not settings.smtp_host:
            raise ConfigurationError("SMTP_HOST must be set for the relay delivery channel")
        if not settings.relay_accepted_destination:
            raise ConfigurationError("RELAY_ACCEPTED_DESTINATION must be set for the relay delivery channel")
        return RelayDeliveryChannel(settings, SMTPRelay(settings))

    raise ConfigurationError(f"Unknown delivery channel '{settings.delivery_channel}' (expected 'relay' or 'api')")


def build_email_sender(settings: Settings):
    """
    Build the Email Sender the gateway delegates to.

    Raises:
        ConfigurationError: when the deployment configuration is invalid
    """
    if settings.email_sender_url:
        if not settings.email_sender_secret:
            raise ConfigurationError("EMAIL_SENDER_SECRET must be set when EMAIL_SENDER_URL is used")
        logger.info(f"Delegating submissions to remote email sender at {settings.email_sender_url}")
        return RemoteEmailSender(settings)

    if settings.email_sender_endpoint_enabled and not settings.email_sender_secret:
        raise ConfigurationError("EMAIL_SENDER_SECRET must be set when EMAIL_SENDER_ENDPOINT_ENABLED is on")

    channel = build_channel(settings)
    logger.info(f"Email sender ready using the {channel.name} delivery channel")
    return EmailSender(settings, channel)

"""
Delivery channels for rendered contact emails.

Two interchangeable strategies, selected per deployment:

- RelayDeliveryChannel assembles a raw multipart/alternative MIME message and
  hands it to a trusted relay together with the envelope sender/recipient.
- ApiDeliveryChannel posts a JSON payload to a transactional email API.
"""

import logging
import secrets
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.utils import formatdate, make_msgid
from typing import Any, Dict, List, Optional, Protocol

import aiosmtplib
import httpx

from contact_relay.core.config import Settings
from contact_relay.core.errors import ConfigurationError, DeliveryFailed
from contact_relay.models.contact import RenderedEmail

logger = logging.getLogger(__name__)

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_boundary(*bodies: str) -> str:
    """Time-based boundary token with a random suffix that occurs in none of the bodies"""
    while True:
        boundary = f"----=_Part_{to_base36(int(time.time() * 1000))}_{secrets.token_hex(8)}"
        if not any(boundary in body for body in bodies):
            return boundary


def _header_value(value: str) -> str:
    # CR/LF inside a header value would start a new header
    return value.replace("\r", " ").replace("\n", " ")


def format_address(name: str, email: str) -> str:
    return f'"{_header_value(name)}" <{_header_value(email)}>'


def build_mime_message(
    rendered: RenderedEmail,
    from_email: str,
    from_name: str,
    to_email: str,
    to_name: str,
    domain: str,
    boundary: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Assemble a raw RFC 5322 message with a text/plain and a text/html part.

    Args:
        rendered: Subject and bodies to package
        from_email, from_name: Header sender
        to_email, to_name: Header recipient
        domain: Domain used for the Message-ID
        boundary: Explicit boundary token (generated when omitted)
        now: Clock used for the Date header

    Returns:
        str: The full message with CRLF line endings
    """
    boundary = boundary or generate_boundary(rendered.text_body, rendered.html_body)
    now = now or datetime.now(timezone.utc)

    headers = [
        f"From: {format_address(from_name, from_email)}",
        f"To: {format_address(to_name, to_email)}",
        f"Reply-To: {format_address(rendered.reply_to_name, rendered.reply_to_email)}",
        f"Subject: {_header_value(rendered.subject)}",
        f"Message-ID: {make_msgid(domain=domain)}",
        "MIME-Version: 1.0",
        f'Content-Type: multipart/alternative; boundary="{boundary}"',
        f"Date: {formatdate(now.timestamp(), usegmt=True)}",
    ]

    body = [
        f"--{boundary}",
        "Content-Type: text/plain; charset=utf-8",
        "Content-Transfer-Encoding: 7bit",
        "",
        rendered.text_body,
        f"--{boundary}",
        "Content-Type: text/html; charset=utf-8",
        "Content-Transfer-Encoding: 7bit",
        "",
        rendered.html_body,
        f"--{boundary}--",
    ]

    return "\r\n".join(headers) + "\r\n\r\n" + "\r\n".join(body)


class RawMessageRelay(Protocol):
    """Trusted component that accepts a raw message for a fixed destination"""

    async def send_raw(self, envelope_from: str, envelope_to: str, raw: bytes) -> None:
        ...


class SMTPRelay:
    """Trusted smarthost reached over SMTP"""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send_raw(self, envelope_from: str, envelope_to: str, raw: bytes) -> None:
        try:
            errors, response = await aiosmtplib.send(
                raw,
                sender=envelope_from,
                recipients=[envelope_to],
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                start_tls=self.settings.smtp_use_tls,
                username=self.settings.smtp_username,
                password=self.settings.smtp_password,
                timeout=self.settings.smtp_timeout,
            )
        except aiosmtplib.SMTPException as e:
            raise DeliveryFailed(f"SMTP relay error: {e}") from e

        if errors:
            details = "; ".join(f"{addr}: {error}" for addr, error in errors.items())
            raise DeliveryFailed(f"SMTP relay refused recipients: {details}")

        logger.debug(f"SMTP relay response: {response}")


class DeliveryChannel(ABC):
    """A single way of getting a rendered email to the destination mailbox"""

    name = "base"

    def __init__(self, settings: Settings):
        self.settings = settings

    @abstractmethod
    async def deliver(self, rendered: RenderedEmail) -> None:
        ...


class RelayDeliveryChannel(DeliveryChannel):
    name = "relay"

    def __init__(self, settings: Settings, relay: RawMessageRelay):
        super().__init__(settings)
        accepted = (settings.relay_accepted_destination or "").strip()
        if not accepted:
            raise ConfigurationError("RELAY_ACCEPTED_DESTINATION must be set for the relay delivery channel")
        if accepted != settings.contact_to_email.strip():
            raise ConfigurationError(
                f"Envelope recipient {settings.contact_to_email} does not match the relay's "
                f"accepted destination {accepted}"
            )
        self.relay = relay

    def build_message(self, rendered: RenderedEmail) -> str:
        return build_mime_message(
            rendered,
            from_email=self.settings.contact_from_email,
            from_name=self.settings.contact_from_name,
            to_email=self.settings.contact_to_email,
            to_name=self.settings.contact_to_name,
            domain=self.settings.effective_sending_domain,
        )

    async def deliver(self, rendered: RenderedEmail) -> None:
        raw = self.build_message(rendered)
        await self.relay.send_raw(
            self.settings.contact_from_email,
            self.settings.contact_to_email,
            raw.encode("utf-8"),
        )


def build_api_payload(settings: Settings, rendered: RenderedEmail) -> Dict[str, Any]:
    content: List[Dict[str, str]] = [
        {"type": "text/plain", "value": rendered.text_body},
        {"type": "text/html", "value": rendered.html_body},
    ]
    return {
        "personalizations": [
            {"to": [{"email": settings.contact_to_email, "name": settings.contact_to_name}]}
        ],
        "from": {"email": settings.contact_from_email, "name": settings.contact_from_name},
        "reply_to": {"email": rendered.reply_to_email, "name": rendered.reply_to_name},
        "subject": rendered.subject,
        "content": content,
    }


class ApiDeliveryChannel(DeliveryChannel):
    name = "api"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(settings)
        self._transport = transport

    async def deliver(self, rendered: RenderedEmail) -> None:
        headers = {"Content-Type": "application/json"}
        if self.settings.email_api_key:
            headers["Authorization"] = f"Bearer {self.settings.email_api_key}"

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.post(
                self.settings.email_api_url,
                json=build_api_payload(self.settings, rendered),
                headers=headers,
                timeout=self.settings.http_timeout,
            )

        if not response.is_success:
            logger.error(f"Email API error: {response.status_code} {response.text}")
            raise DeliveryFailed(f"Email API responded with HTTP {response.status_code}")

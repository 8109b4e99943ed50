from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # Destination mailbox (header "To" and envelope recipient)
    contact_to_email: str = "contact@example.com"
    contact_to_name: str = "Website Contact"

    # Sender identity - must be on the verified sending domain
    contact_from_email: str = "noreply@example.com"
    contact_from_name: str = "Website"
    sending_domain: Optional[str] = None

    # "relay" hands a raw MIME message to a trusted relay, "api" calls the provider
    delivery_channel: str = "api"

    # Relay settings
    relay_accepted_destination: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 25
    smtp_use_tls: bool = False
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_timeout: float = 15.0

    # Transactional email API settings
    email_api_url: str = "https://api.sendgrid.com/v3/mail/send"
    email_api_key: Optional[str] = None

    # When set, the gateway forwards submissions to a remote email sender
    email_sender_url: Optional[str] = None

    # The /internal/email/send endpoint is off unless enabled, and always needs the shared secret
    email_sender_endpoint_enabled: bool = False
    email_sender_secret: Optional[str] = None

    http_timeout: float = 15.0
    display_timezone: str = "America/New_York"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def effective_sending_domain(self) -> str:
        """Domain used for generated Message-IDs"""
        if self.sending_domain:
            return self.sending_domain
        return self.contact_from_email.rpartition("@")[2] or "localhost"

    @property
    def delegation_mode(self) -> str:
        return "remote" if self.email_sender_url else "in-process"


@lru_cache
def get_settings():
    return Settings()

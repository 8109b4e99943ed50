"""
Validation and sanitizing shared by every entry point that accepts a submission.
"""

import re
from typing import Any, Mapping, Optional

from contact_relay.core.email_sender import utc_timestamp
from contact_relay.core.errors import InvalidEmail, MissingFields
from contact_relay.models.contact import DEFAULT_SERVICE, Submission

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize(value: Any) -> str:
    """Strip angle brackets so values cannot inject markup into the HTML email"""
    return str(value).replace("<", "").replace(">", "")


def build_submission(form_data: Mapping[str, Any], timestamp: Optional[str] = None) -> Submission:
    """
    Validate raw form fields and produce a sanitized submission.

    Args:
        form_data: Parsed request body
        timestamp: Receipt time to keep (stamped now when omitted)

    Raises:
        MissingFields: name, email or message is absent or empty
        InvalidEmail: email does not look like local@domain.tld
    """
    name = form_data.get("name")
    email = form_data.get("email")
    message = form_data.get("message")
    service = form_data.get("service")

    if not name or not email or not message:
        raise MissingFields()

    if not EMAIL_PATTERN.match(str(email)):
        raise InvalidEmail()

    return Submission(
        name=sanitize(name),
        email=sanitize(email),
        message=sanitize(message),
        service=sanitize(service) if service else DEFAULT_SERVICE,
        timestamp=sanitize(timestamp) if timestamp else utc_timestamp(),
    )

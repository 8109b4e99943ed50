"""
Error taxonomy for the contact form service.

Caller-input errors carry a message that is safe to return verbatim.
Delivery errors carry a detail meant for the server logs only.
"""


class ContactFormError(Exception):
    """Base class for errors raised while handling a submission"""

    status_code = 500
    message = "An unexpected error occurred. Please try again later."

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class UnsupportedContentType(ContactFormError):
    status_code = 400
    message = "Unsupported content type"


class MissingFields(ContactFormError):
    status_code = 400
    message = "Missing required fields: name, email, and message are required"


class InvalidEmail(ContactFormError):
    status_code = 400
    message = "Invalid email address"


class DeliveryFailed(ContactFormError):
    """The delivery channel refused or failed to accept the message"""

    status_code = 500

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__()

    def __str__(self):
        return self.detail


class ConfigurationError(Exception):
    """Invalid deployment configuration, raised while the app starts"""

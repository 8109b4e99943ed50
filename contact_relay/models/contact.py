from pydantic import BaseModel
from typing import Optional

DEFAULT_SERVICE = "Not specified"


class Submission(BaseModel):
    name: str
    email: str
    message: str
    service: str = DEFAULT_SERVICE
    timestamp: Optional[str] = None  # ISO-8601, stamped at receipt


class RenderedEmail(BaseModel):
    """Subject and bodies shared by every delivery channel"""
    subject: str
    text_body: str
    html_body: str
    reply_to_name: str
    reply_to_email: str

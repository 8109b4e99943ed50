"""
Email sender endpoint.

POST /internal/email/send accepts a submission from a gateway running in remote
delegation mode (EMAIL_SENDER_URL) and delivers it through the local delivery
channel. The endpoint answers 404 unless EMAIL_SENDER_ENDPOINT_ENABLED is on,
and every call must carry the shared secret in the X-Email-Sender-Secret header.
Payloads go through the same validation and sanitizing as the public form.
"""

from fastapi import APIRouter, HTTPException, Request, Depends, status
from fastapi.responses import JSONResponse
import logging
import hmac

from contact_relay.core.config import Settings, get_settings
from contact_relay.core.email_sender import EMAIL_SENDER_SECRET_HEADER, EmailSender
from contact_relay.core.errors import InvalidEmail, MissingFields
from contact_relay.core.validation import build_submission

router = APIRouter()
logger = logging.getLogger(__name__)


def get_local_email_sender(request: Request, settings: Settings = Depends(get_settings)) -> EmailSender:
    if not settings.email_sender_endpoint_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    supplied = request.headers.get(EMAIL_SENDER_SECRET_HEADER, "")
    expected = settings.email_sender_secret or ""
    if not expected or not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("⚠️ Rejected email sender call without a valid shared secret")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    sender = request.app.state.email_sender
    if not isinstance(sender, EmailSender):
        # This deployment forwards to a remote sender; it cannot deliver itself
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Email sender is not enabled on this deployment",
        )
    return sender


@router.post("/send")
async def send_email(request: Request, email_sender: EmailSender = Depends(get_local_email_sender)):
    try:
        data = await request.json()
        if not isinstance(data, dict):
            data = {}

        submission = build_submission(data, timestamp=data.get("timestamp"))
        await email_sender.send(submission)

    except (MissingFields, InvalidEmail) as e:
        logger.warning(f"⚠️ Rejected email sender payload: {e.message}")
        return JSONResponse(
            content={"success": False, "error": e.message},
            status_code=e.status_code,
        )
    except Exception as e:
        logger.exception(f"❌ Email sender error: {str(e)}")
        return JSONResponse(
            content={"success": False, "error": "Email delivery failed"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {"success": True}

"""
Contact form gateway.

POST /api/contact     - validate, sanitize and forward a submission to the email sender
OPTIONS /api/contact  - CORS preflight
anything else         - 405, still with CORS headers

Every response carries CORS headers so the browser accepts it from any origin.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

from contact_relay.core.errors import ContactFormError, UnsupportedContentType
from contact_relay.core.validation import build_submission

router = APIRouter()
logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Thank you for your message! We will get back to you within 1-2 business days."
GENERIC_ERROR = "An unexpected error occurred. Please try again later."

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",  # 24 hours
}


def get_email_sender(request: Request):
    """Email sender built at startup from the deployment settings"""
    return request.app.state.email_sender


async def parse_form_data(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "").lower()

    if "application/json" in content_type:
        data = await request.json()
        return data if isinstance(data, dict) else {}

    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        return dict(form.items())

    raise UnsupportedContentType()


def json_response(
    payload: Dict[str, Any],
    status_code: int = status.HTTP_200_OK,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(content=payload, status_code=status_code, headers={**CORS_HEADERS, **(headers or {})})


@router.options("/contact")
async def contact_preflight():
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=PREFLIGHT_HEADERS)


@router.post("/contact")
async def submit_contact(request: Request, email_sender=Depends(get_email_sender)):
    """
    Handle a contact form submission.

    Accepts application/json, application/x-www-form-urlencoded or
    multipart/form-data bodies with name, email, message and an optional service.

    Returns:
        200 {success: true, message} when the email was handed to the delivery channel
        400 {success: false, error} for invalid input
        500 {success: false, error} for delivery or internal failures
    """
    try:
        form_data = await parse_form_data(request)
        submission = build_submission(form_data)
    except ContactFormError as e:
        logger.warning(f"⚠️ Rejected contact form submission: {e.message}")
        return json_response({"success": False, "error": e.message}, e.status_code)
    except Exception as e:
        logger.exception(f"❌ Failed to read contact form body: {str(e)}")
        return json_response({"success": False, "error": GENERIC_ERROR}, status.HTTP_500_INTERNAL_SERVER_ERROR)

    try:
        await email_sender.send(submission)
    except Exception as e:
        logger.exception(f"❌ Contact form delivery failed: {str(e)}")
        return json_response({"success": False, "error": GENERIC_ERROR}, status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Contact form submission from {submission.email} accepted")
    return json_response({"success": True, "message": SUCCESS_MESSAGE})


@router.api_route("/contact", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def contact_method_not_allowed():
    return json_response(
        {"success": False, "error": "Method not allowed"},
        status.HTTP_405_METHOD_NOT_ALLOWED,
        headers={"Allow": "POST, OPTIONS"},
    )

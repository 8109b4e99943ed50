from fastapi import APIRouter
from contact_relay.api.endpoints import contact
from contact_relay.api.endpoints import email_worker

api_router = APIRouter()

api_router.include_router(contact.router, prefix="/api", tags=["Contact"])
api_router.include_router(email_worker.router, prefix="/internal/email", tags=["Email Sender"])

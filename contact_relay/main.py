#run it with uvicorn contact_relay.main:app --reload
from contextlib import asynccontextmanager
from fastapi import FastAPI
from dotenv import load_dotenv
from contact_relay.api.api_router import api_router
from contact_relay.core.config import get_settings
from contact_relay.core.email_sender import build_email_sender
import logging

# Load environment variables from .env file
load_dotenv()

settings = get_settings()

# Set up logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the email sender once; bad configuration stops the deployment here"""
    logger.info("🚀 Starting contact form service...")
    app.state.email_sender = build_email_sender(get_settings())
    yield
    logger.info("Contact form service stopped")


app = FastAPI(title="Contact Form Relay", version="1.0.0", lifespan=lifespan)

# CORS is answered by the contact routes themselves: the preflight must be a
# bare 204 with a 24h max-age, which CORSMiddleware does not produce.
app.include_router(api_router)


@app.get("/api/health")
def health_check():
    """
    Health check endpoint.

    Reports which delivery channel is configured without revealing secrets.
    """
    current = get_settings()
    return {
        "status": "ok",
        "delivery_channel": current.delivery_channel,
        "delegation": current.delegation_mode,
        "env_vars": {
            "email_api_key": bool(current.email_api_key),
            "smtp_host": bool(current.smtp_host),
            "email_sender_url": bool(current.email_sender_url),
        },
    }

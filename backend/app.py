import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.database import engine, Base
from backend.models import Contact, Conversation, QualificationStatus, Message  # noqa: F401
from backend.config import settings
from backend.errors import register_exception_handlers

logger = logging.getLogger("leadline")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    settings.validate()

    # Create all tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created.")

    if not settings.twilio_account_sid or not settings.twilio_phone_number:
        logger.warning("Twilio is not configured. Bot replies will be stored as failed.")
    if not settings.botpress_webhook_url:
        logger.warning("BOTPRESS_WEBHOOK_URL not set. Inbound SMS will not reach the bot.")

    yield

    logger.info("Shutting down.")


app = FastAPI(title="Leadline", version="1.0.0", lifespan=lifespan)

# CORS - allow the dashboard dev server (for local development)
allowed_origins = ["http://localhost:5173", "http://localhost:3000"]
railway_url = os.environ.get("RAILWAY_PUBLIC_DOMAIN")
if railway_url:
    allowed_origins.append(f"https://{railway_url}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Import and register routers
from backend.routers import contacts, conversations, messages, webhooks  # noqa: E402

app.include_router(contacts.router, prefix="/api/contacts", tags=["contacts"])
app.include_router(conversations.router, prefix="/api/botpress", tags=["conversations"])
app.include_router(messages.router, prefix="/api/messages", tags=["messages"])
app.include_router(webhooks.router, tags=["webhooks"])


@app.get("/api/health")
async def health():
    return {"status": "ok"}

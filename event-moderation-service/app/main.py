# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.kafka_producer import close_kafka_singleton

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Event Moderation Service starting up...")
    yield
    close_kafka_singleton()
    logger.info("Event Moderation Service shutting down...")


app = FastAPI(
    title="Event Moderation Microservice",
    version="1.0.0",
    description="""
        Owns the event status and moderation workflow of the ticketing platform.

        ## Features

        * **Organizer workflow**: create drafts, submit for review, revert, publish
        * **Admin moderation**: approve, reject, flag or request revisions
        * **Status history**: append-only audit trail of every transition
        * **Notifications**: status changes published to Kafka

        ## Authentication

        All endpoints except health checks require a JWT via the
        `Authorization: Bearer <token>` header. Admin endpoints require the
        `admin` or `moderator` role.
        """,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Event Moderation Service is running"}

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fuelsplit.core.auth import get_participants
from fuelsplit.core.config import settings
from fuelsplit.core.logging_config import configure_logging
from fuelsplit.db.mongo import connect_to_mongo, close_mongo_connection, get_db
from fuelsplit.repositories.ledger_repo import LedgerRepository
from fuelsplit.services.ledger_service import LedgerService
from fuelsplit.api.v1.api import api_router

configure_logging(settings.LOG_LEVEL)


async def seed_ledger():
    """Create the ledger document if the database is empty."""
    participants = get_participants()
    service = LedgerService(LedgerRepository(get_db(), participants), participants)
    await service.ensure_initialized(settings.DEFAULT_PRICE_PER_KM)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    await seed_ledger()
    yield
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "Welcome to Fuel Split API"}

@app.get("/health")
async def health():
    return {"status": "ok"}

app.include_router(api_router, prefix=settings.API_V1_STR)

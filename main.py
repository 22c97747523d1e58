import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.models  # ensure models are registered
from app.core.config import CORS_ORIGINS, LOG_FORMAT, LOG_LEVEL
from app.core.logging import setup_logging
from app.utils.database import engine, Base

from app.routers import (
    contracts_router,
    installments_router,
    payments_router,
    reports_router,
)

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="Land Contract Backend API", version="1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(contracts_router.router)
app.include_router(payments_router.router)
app.include_router(installments_router.router)
app.include_router(reports_router.router)


@app.on_event("startup")
def on_startup():
    # DEV ONLY, schema changes go through migrations in production
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


@app.get("/")
def root():
    return {"message": "Land Contract Backend is running"}

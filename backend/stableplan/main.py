"""Stable Planner API: programme import, plan application and calendar editing."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stableplan.config import get_settings
from stableplan.database import create_tables
from stableplan.routers import applied_plans, programmes, workouts

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    logger.info(f"Stable Planner API {API_VERSION} started")
    yield


app = FastAPI(
    title="Stable Planner API",
    description="Horse training programmes: schedule.csv import, versioning, "
                "applying plans to horses and editing the resulting calendar",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(programmes.router, prefix="/api/programmes", tags=["Programmes"])
app.include_router(applied_plans.router, prefix="/api/applied-plans", tags=["Applied Plans"])
app.include_router(workouts.router, prefix="/api/workouts", tags=["Workouts"])


@app.get("/", tags=["Health"])
async def root():
    return {"name": "Stable Planner API", "version": API_VERSION}


@app.get("/health", tags=["Health"])
@app.get("/api/health", tags=["Health"])
async def health_check():
    """Liveness check."""
    return {"status": "healthy"}

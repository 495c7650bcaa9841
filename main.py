# /main.py
from fastapi import FastAPI, status, Request
from fastapi.responses import RedirectResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from contextlib import asynccontextmanager
import logging

from api.v1 import router as v1_router
from config import settings
from services.db_schema_creation import get_db_schema_service
from services.events import init_event_bus, reset_event_bus

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler()
    ]
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def bootstrap_schema() -> None:
    if not settings.PGHOST:
        logger.info("PGHOST not set; skipping database schema bootstrap")
        return

    try:
        db_schema_service = get_db_schema_service(settings.database_url())
        db_schema_service.create_tables(settings.DB_SCHEMA)
        logger.info(f"Database tables initialized in schema '{settings.DB_SCHEMA}'")
    except Exception as e:
        logger.error(f"Error initializing database schema: {str(e)}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.events = init_event_bus()
    logger.info("Event bus started")

    bootstrap_schema()

    yield

    reset_event_bus()
    logger.info("Event bus stopped")


app = FastAPI(
    title="Love on the Pixel API",
    version="0.1.0",
    description="Invitations, connections and affirmations for Love on the Pixel",
    lifespan=lifespan
)

# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        settings.FRONTEND_URL,
        "capacitor://localhost"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("Starting Love on the Pixel API")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors()}),
    )

# Root endpoint
@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")

app.include_router(v1_router, prefix="/api")

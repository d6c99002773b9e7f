import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .booking import router as booking_router
from .payment import router as payment_router
from .db import init_db
from .logging_config import setup_logging, get_logger
from .middleware import LoggingMiddleware
from .error_middleware import ErrorAuditMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
CREATE_TABLES = os.getenv("CREATE_TABLES", "true").lower() in ("1", "true", "yes")

@asynccontextmanager
async def lifespan(app: FastAPI):
    if CREATE_TABLES:
        init_db()
        logger.info("Database tables ensured")
    yield

app = FastAPI(
    title="Estate Listing API",
    description="Property and apartment booking and payment API",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)
# Added last, so it wraps the logging middleware
app.add_middleware(ErrorAuditMiddleware)

app.include_router(booking_router.router)
app.include_router(payment_router.router)

@app.get("/")
def root():
    return {"message": "Estate Listing API", "version": "1.0.0"}

@app.get("/health")
def health_check():
    return {"status": "healthy"}

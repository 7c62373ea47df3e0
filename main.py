from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from api.routes import geocoding, websocket
from core.config import settings
from services.geocoding import close_nominatim_client

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Set specific log levels
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)  # Reduce noise from access logs
logging.getLogger("httpx").setLevel(logging.WARNING)  # One line per Nominatim request otherwise


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Shared HTTP client is created lazily on first request
    await close_nominatim_client()


app = FastAPI(
    title="Location Picker API",
    description="Location search and resolution for vehicle and load forms",
    version="1.0.0",
    lifespan=lifespan
)

allowed_origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(geocoding.router)
app.include_router(websocket.router)


@app.get("/")
async def root():
    return {"message": "Location Picker API", "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}

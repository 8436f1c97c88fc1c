from dotenv import load_dotenv

# Load environment variables before the config module reads them
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bagr import __version__
from bagr.api.v1 import router as v1_router
from bagr.config import config
from bagr.schemas import HealthResponse

app = FastAPI(
    title="Bagr Backend",
    description="Disc photo cropping, color sampling and bag share links",
    version=__version__
)

# Add CORS middleware with basic configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"]
)

app.include_router(v1_router)


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Disc photo service health check."""
    return HealthResponse(
        ok=True,
        version=f"v{__version__}",
        service="bagr-disc-photos"
    )


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Bagr Backend API",
        "version": __version__,
        "docs": "/docs"
    }

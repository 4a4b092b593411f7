"""
Root and health routes for the Resonance Lab song API
"""

from fastapi import APIRouter

from resonance.config import Config
from resonance.models import HealthResponse

router = APIRouter()


@router.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {Config.TITLE}",
        "version": Config.VERSION,
        "docs": Config.DOCS_URL,
        "endpoints": {
            "health": "/api/health",
            "songs": "/api/songs",
            "song": "/api/songs/{artist}/{song}",
            "artists": "/api/artists",
            "search": "/api/search",
        },
    }


@router.get("/api/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return HealthResponse(status="ok", version=Config.VERSION, message=Config.HEALTH_MESSAGE)

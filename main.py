#!/usr/bin/env python3
"""
Main entry point for the Resonance Lab song API
"""

import uvicorn

from resonance import create_app
from resonance.config import Config
from resonance.logging import setup_logging

setup_logging(Config.LOG_LEVEL)

# Create FastAPI application instance
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=Config.RELOAD,
        timeout_graceful_shutdown=30,
    )

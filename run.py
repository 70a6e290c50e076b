#!/usr/bin/env python3
"""Startup script for local runs and container deployment."""
import uvicorn

from boxoffice.config import settings

if __name__ == "__main__":
    print(f"Starting Box Office on port {settings.port}")
    uvicorn.run(
        "boxoffice.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info"
    )

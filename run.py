#!/usr/bin/env python3
"""
Run script for the AgriVoice backend
"""
import uvicorn

from agrivoice.config.settings import settings
from agrivoice.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)

import logging

from fastapi import FastAPI

from . import __version__
from .config import settings
from .routes import search

logger = logging.getLogger(__name__)

app = FastAPI(title="Imageboard Downloader", version=__version__)

app.include_router(search.router)

@app.on_event("startup")
async def startup_event():
    """Run on startup"""
    names = ", ".join(sorted(settings.servers))
    logger.info(f"Imageboard Downloader started with servers: {names}")

@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}

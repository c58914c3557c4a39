"""FastAPI application bootstrap and routing setup."""

import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from termcolor import colored
from fastapi.middleware.cors import CORSMiddleware
from backdrop.utility.logger import AppLogger
from backdrop.handlers.error_handler import MapExceptions as me
from backdrop.controller.studio_routes import router as studio_router, get_controller

AppLogger.init(
    level=logging.INFO,
    log_to_file=True,
)
logger = AppLogger.get_logger(__name__)

mode = os.getenv("RUN_MODE", "actual")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the initial example-image load once the server starts."""
    logger.info(colored(f"Running in {mode} mode", "yellow"))
    await get_controller().load_initial()
    yield


app = FastAPI(title="Backdrop Studio", lifespan=lifespan)
me.register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)
app.include_router(studio_router)


@app.get("/", tags=["Health"])
def root():
    """Health probe indicating API wiring and logger setup succeeded."""
    return {"status": "ok", "message": "Setup Successfull", "mode": mode}


@app.get("/health", tags=["Health"])
def health_check():
    """Secondary health endpoint used by deployments and monitoring probes."""
    return {"status": "ok", "message": "FastAPI server running!", "mode": mode}

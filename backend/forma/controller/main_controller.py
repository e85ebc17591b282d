"""FastAPI application bootstrap and routing setup."""

from fastapi import FastAPI
from termcolor import colored
from fastapi.middleware.cors import CORSMiddleware
from forma.config.settings import get_settings
from forma.utility.logger import AppLogger
from forma.handlers.error_handler import MapExceptions as me
from forma.controller.session_controller import router as session_router

settings = get_settings()

AppLogger.init(
    level=AppLogger.level_from_name(settings.log_level),
    log_to_file=settings.log_to_file,
)

app = FastAPI(title=settings.app_name, version=settings.app_version)
me.register_exception_handlers(app)
logger = AppLogger.get_logger(__name__)

mode = settings.run_mode
logger.info(colored(f"Running in {mode} mode", "yellow"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)
app.include_router(session_router)


@app.get("/", tags=["Health"])
def root_check():
    """Liveness check indicating API wiring and logger setup succeeded."""
    return {"status": "ok", "message": "Setup Successfull", "mode": mode}


@app.get("/health", tags=["Health"])
def health_check():
    """Secondary health endpoint used by deployments and monitoring."""
    return {"status": "ok", "message": "FastAPI server running!", "mode": mode}

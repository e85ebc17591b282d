"""Error taxonomy and helpers for mapping model-service failures to API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Dict, Tuple

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from google.genai import errors as genai_errors
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)


@dataclass
class RoomDesignError(Exception):
    """
    Base error for every failure the design flow can surface.
    This is what FastAPI will ultimately handle and send as JSON.
    """

    provider: str
    message: str
    status_code: int = 500
    error_type: str = "error"
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        """Format a readable representation for logging and responses."""
        return f"[{self.provider}] {self.error_type}: {self.message}"


class ConfigurationError(RoomDesignError):
    """Operator-side misconfiguration, such as a missing API credential."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            provider="config",
            message=message,
            status_code=500,
            error_type="configuration_error",
            details=details,
        )


class TransportError(RoomDesignError):
    """
    Network or service failure while calling Gemini.
    Carries the upstream message in ``details`` for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        error_type: str = "api_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            provider="gemini",
            message=message,
            status_code=status_code,
            error_type=error_type,
            details=details,
        )


class ParseError(RoomDesignError):
    """Model output that does not match the expected shape."""

    def __init__(
        self,
        message: str,
        raw_response: Optional[str] = None,
        preview_chars: int = 2000,
    ) -> None:
        self.raw_response = raw_response
        details = None
        if raw_response is not None:
            details = {"raw_response": raw_response[:preview_chars]}
        super().__init__(
            provider="gemini",
            message=message,
            status_code=502,
            error_type="parse_error",
            details=details,
        )


class InputValidationError(RoomDesignError):
    """User input rejected before any network call."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(
            provider="forma",
            message=message,
            status_code=400,
            error_type="validation_error",
            details={"field": field} if field else None,
        )


class SessionBusyError(RoomDesignError):
    """A transition was requested while another one is still running."""

    def __init__(
        self, message: str = "A request is already in progress for this session."
    ) -> None:
        super().__init__(
            provider="forma",
            message=message,
            status_code=409,
            error_type="session_busy",
        )


class InvalidTransitionError(RoomDesignError):
    """An action that the current screen does not offer, such as redesigning before any output."""

    def __init__(self, action: str, state: str) -> None:
        super().__init__(
            provider="forma",
            message=f"Cannot {action} while the session is in state '{state}'.",
            status_code=409,
            error_type="invalid_transition",
            details={"action": action, "state": state},
        )


class SessionNotFoundError(RoomDesignError):
    """Lookup of a session id that is not (or no longer) registered."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            provider="forma",
            message=f"Design session '{session_id}' was not found.",
            status_code=404,
            error_type="session_not_found",
        )


class MapExceptions:
    """Register and translate provider-specific exceptions into API-friendly errors.

    Encapsulates reusable handlers so the FastAPI app can remain clean.
    Centralizes logging and status code mapping.
    """

    def map_gemini_exception(self, exc: Exception) -> TransportError:
        """
        Map low-level Gemini SDK / HTTP exceptions to a clean domain error.
        """
        logger.error("Gemini error during model call", exc_info=exc)
        upstream = {"upstream_message": str(exc), "exception_type": exc.__class__.__name__}

        if isinstance(exc, genai_errors.ClientError):
            code = getattr(exc, "code", None)
            upstream["upstream_status"] = code
            if code == 429:
                return TransportError(
                    message="Gemini usage limits reached. Please try again later.",
                    status_code=429,
                    error_type="rate_limit",
                    details=upstream,
                )
            if code in (401, 403):
                return TransportError(
                    message="Access denied when calling Gemini. Check credentials or project permissions.",
                    status_code=403,
                    error_type="permission_denied",
                    details=upstream,
                )
            return TransportError(
                message="Invalid request sent to Gemini. Please verify your inputs and try again.",
                status_code=400,
                error_type="bad_request",
                details=upstream,
            )
        if isinstance(exc, genai_errors.ServerError):
            upstream["upstream_status"] = getattr(exc, "code", None)
            if getattr(exc, "code", None) == 504:
                return TransportError(
                    message="Gemini timed out while processing the request. Please try again.",
                    status_code=504,
                    error_type="timeout",
                    details=upstream,
                )
            return TransportError(
                message="Gemini encountered an internal error. Please try again.",
                status_code=502,
                error_type="api_error",
                details=upstream,
            )
        if isinstance(exc, genai_errors.APIError):
            return TransportError(
                message="Gemini returned an unexpected error. Please try again.",
                status_code=502,
                error_type="api_error",
                details=upstream,
            )
        if isinstance(exc, httpx.TimeoutException):
            return TransportError(
                message="Gemini timed out while processing the request. Please try again.",
                status_code=504,
                error_type="timeout",
                details=upstream,
            )
        if isinstance(exc, httpx.TransportError):
            return TransportError(
                message="Could not connect to Gemini. Please check your network and try again.",
                status_code=503,
                error_type="connection_error",
                details=upstream,
            )

        return TransportError(
            message="An unexpected error occurred while calling Gemini. Please try again.",
            status_code=500,
            error_type="unknown_error",
            details=upstream,
        )

    @staticmethod
    def to_user_message(exc: Exception) -> Tuple[str, str]:
        """Return the (message, error_type) pair shown to the user for a failure."""
        if isinstance(exc, RoomDesignError):
            return exc.message, exc.error_type
        if isinstance(exc, OSError):
            return f"Could not read the room image: {exc}", "io_error"
        return "Something went wrong while processing your request. Please try again.", "unknown_error"

    @staticmethod
    def register_exception_handlers(app: FastAPI) -> None:
        """
        Call this once in the main FastAPI app to register handlers:

            from forma.handlers.error_handler import MapExceptions
            app = FastAPI()
            MapExceptions.register_exception_handlers(app)
        """

        @app.exception_handler(RoomDesignError)
        async def room_design_error_handler(
            request: Request, exc: RoomDesignError
        ) -> JSONResponse:
            logger.error(
                "RoomDesignError caught by FastAPI handler",
                extra={"provider": exc.provider, "type": exc.error_type},
            )

            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "status": "error",
                    "provider": exc.provider,
                    "error_type": exc.error_type,
                    "message": exc.message,
                    "details": exc.details,
                },
            )

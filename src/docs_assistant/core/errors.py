"""
Error Taxonomy and Global Error Handling

This module defines the exception hierarchy used across the crawl, index,
retrieval and chat layers, together with the FastAPI handlers that turn those
exceptions into deterministic JSON responses.

Propagation Policy
------------------
- FetchError is absorbed by the crawler (the page is skipped).
- ServiceError subclasses (embedding / completion / index build) propagate to
  the request boundary and become a generic 502 response.
- ValidationError is raised before any external call and becomes a 400
  (or 403 for ScopeViolationError).
- Anything else is a 500 with no internal details leaked to clients.
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("docs.errors")


# ---------------------------------------------------------------------
# Exception Hierarchy
# ---------------------------------------------------------------------

class DocsAssistantError(RuntimeError):
    """Base class for all application errors."""


class FetchError(DocsAssistantError):
    """Raised when a page cannot be fetched (network, timeout, non-2xx)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ServiceError(DocsAssistantError):
    """An external model call failed; the request cannot be answered."""


class EmbeddingError(ServiceError):
    """Raised when embedding generation fails."""


class CompletionError(ServiceError):
    """Raised when the chat completion call fails."""


class IndexBuildError(ServiceError):
    """Raised when the similarity index cannot be built."""


class DimensionMismatchError(DocsAssistantError):
    """Two vectors of different dimensionality were compared."""


class ValidationError(DocsAssistantError):
    """Caller input was rejected before any external call was made."""


class ScopeViolationError(ValidationError):
    """A requested source lies outside the allowed documentation scope."""

    def __init__(self, rejected: list[str]) -> None:
        super().__init__(
            "Requested sources are outside the allowed documentation scope: "
            + ", ".join(rejected)
        )
        self.rejected = rejected


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def validation_error_handler(
    request: Request,
    exc: ValidationError,
) -> JSONResponse:
    """
    Map rejected input to a 400 (or 403 for out-of-scope sources).
    """
    if isinstance(exc, ScopeViolationError):
        logger.warning(
            "Rejected out-of-scope sources on %s: %s",
            request.url.path,
            exc.rejected,
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"error": "forbidden_source", "detail": str(exc)},
        )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_request", "detail": str(exc)},
    )


async def service_error_handler(
    request: Request,
    exc: ServiceError,
) -> JSONResponse:
    """
    Map an upstream model failure to a generic 502 response.

    The upstream error message is logged but never returned to the client.
    """
    logger.error(
        "Upstream service failure during %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "error": "upstream_service_error",
            "detail": "Failed to fetch AI response",
        },
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Logs the full stack trace internally and returns a generic 500 error with
    no internal details.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=payload,
    )

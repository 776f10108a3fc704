"""
Middleware for the Smart Workplace Management Portal
"""

import time
import uuid
import logging
from typing import Callable, Optional
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.auth.authorizer import RequestAuthorizer
from app.auth.policy import RoutePolicyTable
from app.auth.service import AuthService
from app.core import database
from app.core.config import settings
from app.core.error_handlers import api_exception_response
from app.core.exceptions import BaseAPIException
from app.core.security import TokenService

logger = logging.getLogger(__name__)


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Middleware to track requests with unique IDs and timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {type(exc).__name__}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "process_time": process_time,
                }
            )
            raise

        process_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time, 4))

        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time": process_time,
            }
        )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        # Add HSTS header for production
        if not settings.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Gate every request through the route policy table.

    On success the caller's principal (or None for public routes) is stored
    on ``request.state.principal``. Failures are rendered here because
    middleware runs outside the app's exception handlers.
    """

    def __init__(
        self,
        app,
        tokens: Optional[TokenService] = None,
        policy: Optional[RoutePolicyTable] = None
    ):
        super().__init__(app)
        self.tokens = tokens
        self.policy = policy

    def _authorize(self, method: str, path: str, authorization: Optional[str]):
        db = database.SessionLocal()
        try:
            auth_service = AuthService(db)
            authorizer = RequestAuthorizer(
                load_user=auth_service.get_user_by_email,
                tokens=self.tokens,
                policy=self.policy
            )
            return authorizer.authorize(method, path, authorization)
        finally:
            db.close()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            principal = await run_in_threadpool(
                self._authorize,
                request.method,
                request.url.path,
                request.headers.get("authorization")
            )
        except BaseAPIException as exc:
            logger.warning(
                f"Request rejected: {request.method} {request.url.path} - {exc.error_code}",
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "path": request.url.path,
                    "method": request.method,
                    "error_code": exc.error_code
                }
            )
            return api_exception_response(request, exc)

        request.state.principal = principal
        return await call_next(request)


def add_middleware(app):
    """Add all middleware to the FastAPI app."""

    # Add middleware in reverse order (last added is executed first)

    # Authorization runs closest to the routes
    app.add_middleware(AuthorizationMiddleware)

    # Security headers
    app.add_middleware(SecurityHeadersMiddleware)

    # Request tracking (should be last to track everything)
    app.add_middleware(RequestTrackingMiddleware)

    logger.info("Middleware registered successfully")

"""
Forum request middleware.

Every response carries a security header set; JSON endpoints get a
``default-src 'none'`` policy, and only the interactive docs may pull the
Swagger / ReDoc bundles from their CDN. Cookie-authenticated mutations must
echo the ``forum_csrf`` cookie in ``X-CSRF-Token``.
"""

from __future__ import annotations

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from forum.core.auth import CSRF_COOKIE, SESSION_COOKIE

log = structlog.get_logger()

CSRF_HEADER = "X-CSRF-Token"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# These endpoints hand out the CSRF cookie.
CSRF_EXEMPT_PATHS = frozenset({"/auth/login", "/auth/register"})

DOCS_PATHS = frozenset({"/docs", "/redoc"})

API_CSP = "default-src 'none'; frame-ancestors 'none'"
DOCS_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net https://fonts.googleapis.com; "
    "font-src https://fonts.gstatic.com; "
    "img-src 'self' data: https://fastapi.tiangolo.com https://cdn.redoc.ly; "
    "worker-src blob:; "
    "frame-ancestors 'none'"
)

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "same-origin",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
}


def content_security_policy(path: str) -> str:
    return DOCS_CSP if path in DOCS_PATHS else API_CSP


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(BASE_HEADERS)
        response.headers["Content-Security-Policy"] = content_security_policy(request.url.path)
        return response


def _needs_csrf_check(request: Request) -> bool:
    if request.method in SAFE_METHODS or request.url.path in CSRF_EXEMPT_PATHS:
        return False
    # Bearer tokens are never sent implicitly by a browser.
    if request.headers.get("Authorization"):
        return False
    return SESSION_COOKIE in request.cookies


class CSRFMiddleware(BaseHTTPMiddleware):
    """Double-submit check for thread, reply, subscription and logout requests
    made with the forum session cookie."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if not _needs_csrf_check(request):
            return await call_next(request)

        cookie_token = request.cookies.get(CSRF_COOKIE)
        header_token = request.headers.get(CSRF_HEADER)
        if cookie_token and header_token and cookie_token == header_token:
            return await call_next(request)

        log.warning("csrf.rejected", method=request.method, path=request.url.path)
        return JSONResponse(
            status_code=403,
            content={
                "error": {
                    "code": "CSRF_VALIDATION_FAILED",
                    "message": f"Missing or mismatched {CSRF_HEADER} header.",
                    "status": 403,
                }
            },
        )

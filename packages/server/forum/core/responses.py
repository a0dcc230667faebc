"""
Content negotiation between JSON callers and browser callers.

JSON callers get raw entity data. Browser callers get a redirect carrying a
one-shot flash message in a cookie that the next page read consumes.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

FLASH_COOKIE = "forum_flash"


def wants_json(request: Request) -> bool:
    """True when the Accept header asks for JSON (``application/json`` or ``+json``)."""
    accept = request.headers.get("accept", "")
    return "/json" in accept or "+json" in accept


def redirect_with_flash(url: str, message: str) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=303)
    response.set_cookie(key=FLASH_COOKIE, value=message, httponly=True, samesite="lax", path="/")
    return response


def pop_flash(request: Request, response: Response) -> Optional[str]:
    """Read the pending flash message, if any, and expire it."""
    message = request.cookies.get(FLASH_COOKIE)
    if message is not None:
        response.delete_cookie(FLASH_COOKIE, path="/")
    return message

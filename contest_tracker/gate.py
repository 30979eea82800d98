"""
Request-level access gate for the HTML pages.

Protected pages redirect anonymous visitors to the login page with a
``callbackUrl``; the login and register pages redirect signed-in users home.
The API under ``/api`` is left alone: every repository call enforces its own
authentication and ownership checks.
"""
import re
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from contest_tracker.auth import resolve_user_id

LOGIN_PATH = "/auth/login"
REGISTER_PATH = "/auth/register"
HOME_PATH = "/"
AUTH_PAGES = {LOGIN_PATH, REGISTER_PATH}

PROTECTED_PREFIXES = ("/profile", "/bookmarks", "/solutions")
UNGATED_PREFIXES = ("/api", "/static")
_CONTEST_EDIT = re.compile(r"^/contests/[^/]+/edit/?$")


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_protected(path: str) -> bool:
    if any(_under(path, prefix) for prefix in UNGATED_PREFIXES):
        return False
    if any(_under(path, prefix) for prefix in PROTECTED_PREFIXES):
        return True
    if path.rstrip("/") == "/contests/new" or _CONTEST_EDIT.match(path):
        return True
    # anything else under /auth, e.g. /auth/logout
    return _under(path, "/auth") and path.rstrip("/") not in AUTH_PAGES


def redirect_target(path: str, authenticated: bool) -> Optional[str]:
    """Where to send the request, or None to let it through."""
    if not authenticated and is_protected(path):
        return f"{LOGIN_PATH}?{urlencode({'callbackUrl': path})}"
    if authenticated and path.rstrip("/") in AUTH_PAGES:
        return HOME_PATH
    return None


async def access_gate(request: Request, call_next):
    settings = request.app.state.settings
    authenticated = resolve_user_id(request.cookies, settings) is not None
    target = redirect_target(request.url.path, authenticated)
    if target is not None:
        return RedirectResponse(url=target, status_code=303)
    return await call_next(request)

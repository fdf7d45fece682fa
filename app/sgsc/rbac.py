from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g, redirect, request, url_for

from app.sgsc.models import User


def user_has_permission(user: User | None, permission_key: str) -> bool:
    if not user or not user.is_active:
        return False
    for role in user.roles:
        for perm in role.permissions:
            if perm.key == permission_key:
                return True
    return False


def _login_redirect():
    nxt = request.full_path or request.path
    if nxt.endswith("?"):
        nxt = nxt[:-1]
    return redirect(url_for("auth.login_get", next=nxt))


def check_permission(permission_key: str) -> None:
    """Abort with 403 unless the current user holds `permission_key`."""
    if not user_has_permission(getattr(g, "current_user", None), permission_key):
        g.missing_permission = permission_key
        abort(403)


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    """For routes whose permission depends on the URL (see catalogs)."""

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user or not user.is_active:
            return _login_redirect()
        return fn(*args, **kwargs)

    return wrapped


def require_permission(permission_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            # No session -> login screen.
            if not user or not user.is_active:
                return _login_redirect()
            check_permission(permission_key)
            return fn(*args, **kwargs)

        return wrapped

    return decorator

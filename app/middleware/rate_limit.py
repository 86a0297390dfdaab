"""
Homesite – Brute force protection for the admin login.
In-memory, per process.
"""

import time
import logging
from collections import defaultdict

from fastapi import HTTPException, status

from app.config import get_settings

logger = logging.getLogger(__name__)

_login_attempts: dict[str, list[float]] = defaultdict(list)


def check_login_rate(ip: str):
    """Reject the attempt once an IP used up its login attempts for the window."""
    settings = get_settings()
    now = time.time()
    window_start = now - settings.LOGIN_WINDOW_SECONDS

    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > window_start]

    if len(_login_attempts[ip]) >= settings.LOGIN_MAX_ATTEMPTS:
        logger.warning("Login rate limit hit for %s", ip)
        minutes = max(1, settings.LOGIN_WINDOW_SECONDS // 60)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many login attempts. Please try again in {minutes} minutes.",
            headers={"Retry-After": str(settings.LOGIN_WINDOW_SECONDS)},
        )

    _login_attempts[ip].append(now)


def reset_login_attempts(ip: str | None = None):
    """Forget recorded attempts (one IP, or all of them)."""
    if ip is None:
        _login_attempts.clear()
    else:
        _login_attempts.pop(ip, None)

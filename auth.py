"""
Login degli admin e controllo della sessione.

La sessione è solo un cookie isLoggedIn=true: nessun record lato server e
nessuna informazione su quale admin ha fatto login.
"""

import logging
import secrets
from typing import Optional

from fastapi import Cookie, Response

from config import AdminCredential

logger = logging.getLogger(__name__)

SESSION_COOKIE = "isLoggedIn"
SESSION_VALUE = "true"
SESSION_MAX_AGE = 24 * 60 * 60  # 24 ore


class LoginRequired(Exception):
    """Cookie di sessione assente o non valido."""


def _same(a: str, b: str) -> bool:
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def authenticate(admins, username: str, password: str) -> Optional[AdminCredential]:
    """Ritorna il primo admin con username e password identici, altrimenti None."""
    for admin in admins:
        if _same(admin.username, username) and _same(admin.password, password):
            return admin
    return None


def is_logged_in(cookie_value: Optional[str]) -> bool:
    return cookie_value == SESSION_VALUE


def require_login(is_logged_in_cookie: Optional[str] = Cookie(None, alias=SESSION_COOKIE)):
    # Le API protette ricevono lo stesso redirect delle pagine, non un 401 JSON
    if not is_logged_in(is_logged_in_cookie):
        raise LoginRequired()


def issue_session(response: Response, secure: bool) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=SESSION_VALUE,
        httponly=True,
        secure=secure,
        max_age=SESSION_MAX_AGE,
        samesite="lax",
    )


def clear_session(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE)

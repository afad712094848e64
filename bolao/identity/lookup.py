"""Resolve a username to the login email of its owner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bolao.models import Profile

if TYPE_CHECKING:
    from .api import AuthAdminClient

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_MISSING_INPUT = 400
STATUS_NOT_FOUND = 404
STATUS_SERVER_ERROR = 500


@dataclass(frozen=True)
class EmailLookup:
    """Outcome of a username lookup.

    Attributes
    ----------
    status : int
        HTTP-style status: 200 on success, 400 for a missing username, 404 when
        no profile matches and 500 for database, auth service or unexpected
        failures.
    email : Optional[str]
        Login email, set only on success.
    error : Optional[str]
        Stable error message, set on every failure.
    """

    status: int
    email: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def to_json(self) -> dict[str, Any]:
        if self.ok:
            return {"email": self.email}
        return {"error": self.error}


def _failure(status: int, error: str) -> EmailLookup:
    return EmailLookup(status=status, error=error)


def _lookup(
    session: Session,
    username: Optional[str],
    client: Optional["AuthAdminClient"],
) -> EmailLookup:
    if not username or not username.strip():
        logger.info("No username provided")
        return _failure(STATUS_MISSING_INPUT, "Username is required")

    logger.debug("Looking up email for username: %s", username)
    try:
        profile = Profile.get_by_public_id(session, username)
    except SQLAlchemyError as exc:
        logger.error("Database error while looking up %s: %s", username, exc)
        return _failure(STATUS_SERVER_ERROR, "Database error")

    if profile is None:
        logger.info("Username not found: %s", username)
        return _failure(STATUS_NOT_FOUND, "User not found")

    try:
        if client is None:
            from .api import AuthAdminClient

            client = AuthAdminClient()
        email = client.get_user_email(profile.user_id)
    except (requests.RequestException, RuntimeError, ValueError) as exc:
        logger.error("Auth error for username %s: %s", username, exc)
        return _failure(STATUS_SERVER_ERROR, "Could not retrieve user email")

    if not email:
        logger.error("Auth record for username %s has no email", username)
        return _failure(STATUS_SERVER_ERROR, "Could not retrieve user email")

    logger.debug("Found email for username: %s", username)
    return EmailLookup(status=STATUS_OK, email=email)


def lookup_email_by_username(
    session: Session,
    username: Optional[str],
    client: Optional["AuthAdminClient"] = None,
) -> EmailLookup:
    """Return the login email registered for ``username``.

    The profile is matched case-insensitively on ``public_id`` and the email
    is read from the auth service through ``client``. Failures are reported
    through :class:`EmailLookup` rather than raised; anything unexpected maps
    to ``500 "Internal server error"``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session used to query profiles.
    username : Optional[str]
        Public username typed at login.
    client : Optional[AuthAdminClient]
        Pre-configured auth admin client. A default one is created from the
        environment when omitted.
    """
    try:
        return _lookup(session, username, client)
    except Exception:
        logger.exception("Unexpected error looking up username %r", username)
        return _failure(STATUS_SERVER_ERROR, "Internal server error")


__all__ = [
    "EmailLookup",
    "STATUS_MISSING_INPUT",
    "STATUS_NOT_FOUND",
    "STATUS_OK",
    "STATUS_SERVER_ERROR",
    "lookup_email_by_username",
]

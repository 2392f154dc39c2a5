"""
Bearer token resolution for user-scoped endpoints.
"""
import hashlib
import logging
import secrets
import uuid
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app import models

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    pass


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_user(db: Session, email: str) -> Tuple[models.UserProfile, str]:
    """Create a principal and return it with its plain bearer token."""
    token = secrets.token_urlsafe(32)
    user = models.UserProfile(id=str(uuid.uuid4()), email=email, access_token_hash=hash_token(token))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {user.id}")
    return user, token


def resolve_principal(db: Session, authorization: Optional[str]) -> models.UserProfile:
    """
    Map an ``Authorization: Bearer <token>`` header to a user.

    Raises:
        AuthenticationError: header missing, malformed, or token unknown
    """
    if not authorization:
        raise AuthenticationError("No authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authentication failed")

    user = (
        db.query(models.UserProfile)
        .filter(models.UserProfile.access_token_hash == hash_token(token.strip()))
        .first()
    )
    if user is None:
        raise AuthenticationError("Authentication failed")
    return user

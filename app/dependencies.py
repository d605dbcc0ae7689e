# app/dependencies.py

import logging
from typing import Optional, Iterator

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core import locales
from app.core.config import settings
from app.core.exceptions import Unauthorized
from app.db.session import SessionLocal

# --- Logger ---
logger = logging.getLogger(__name__)

# --- Authentication schemes ---
# auto_error=False: a missing header must produce our own 401 body, not the default 403
bearer_scheme = HTTPBearer(auto_error=False)


class Identity(BaseModel):
    """Authenticated caller as seen by the storefront. Issued by the identity provider."""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


# --- DB session ---
def get_db_session_instance() -> Session:
    """Creates a new DB session."""
    return SessionLocal()

def get_db() -> Iterator[Session]:
    """
    Main FastAPI dependency for a DB session.
    A generator so that `Depends` closes the session after the request.
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()


# --- Authentication dependencies ---

def decode_identity(token: str) -> Identity:
    """
    Verifies a bearer token issued by the identity provider.
    Raises Unauthorized if the token is invalid or has no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"JWT Error during token decoding: {e}")
        raise Unauthorized(locales.ERROR_NOT_AUTHENTICATED)

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Token payload is missing 'sub' (user_id).")
        raise Unauthorized(locales.ERROR_NOT_AUTHENTICATED)

    return Identity(id=str(user_id), email=payload.get("email"), role=payload.get("role"))


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """
    REQUIRED dependency.
    Needs a valid token, otherwise answers 401.
    """
    logger.debug("Dependency 'get_current_user' starting...")

    if not credentials or not credentials.credentials:
        raise Unauthorized("No authorization header provided.")

    identity = decode_identity(credentials.credentials)
    request.state.user = identity
    logger.info(f"Successfully authenticated user ID: {identity.id}")
    return identity

"""Firebase Authentication dependencies."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from firebase_admin import auth
from loguru import logger
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from firebase_config import get_firebase_auth
from models import UserDB


class FirebaseUser(BaseModel):
    """Claims of a verified Firebase ID token."""

    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    claims: dict = {}


class AuthenticatedUser(BaseModel):
    """A verified Firebase user together with the local user row.

    Every workout plan, session and execution is owned by ``user_id``.
    """

    firebase_uid: str
    user_id: UUID
    email: str
    firebase_user: FirebaseUser


def extract_token_from_request(request: Request) -> Optional[str]:
    """Return the Bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    return auth_header[7:]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def verify_firebase_token(
    request: Request,
    auth_instance: auth = Depends(get_firebase_auth),
) -> FirebaseUser:
    """Verify the request's Firebase ID token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    token = extract_token_from_request(request)

    if not token:
        raise _unauthorized("Missing authentication token")

    try:
        decoded_token = auth_instance.verify_id_token(token)
    except auth.ExpiredIdTokenError as err:
        raise _unauthorized("Authentication token has expired") from err
    except auth.InvalidIdTokenError as err:
        raise _unauthorized("Invalid authentication token") from err
    except Exception as e:
        logger.bind(path=request.url.path).warning(f"Token verification failed: {e}")
        raise _unauthorized(f"Authentication failed: {str(e)}") from e

    return FirebaseUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        claims=decoded_token,
    )


async def get_or_create_user(
    firebase_user: FirebaseUser = Depends(verify_firebase_token),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    """Resolve the local user for a verified token, creating it on first login.

    Raises:
        HTTPException: 401 if the token carries no email
        HTTPException: 500 if the user row cannot be created
    """
    if not firebase_user.email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User email is required",
        )

    user = db.query(UserDB).filter(UserDB.firebase_uid == firebase_user.uid).first()

    if not user:
        try:
            user = UserDB(
                firebase_uid=firebase_user.uid,
                email=firebase_user.email,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.bind(firebase_uid=firebase_user.uid).exception(
                "Failed to create user"
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create user: {str(e)}",
            ) from e
        logger.bind(user_id=str(user.id)).info("Created user on first login")

    return AuthenticatedUser(
        firebase_uid=firebase_user.uid,
        user_id=user.id,
        email=user.email,
        firebase_user=firebase_user,
    )

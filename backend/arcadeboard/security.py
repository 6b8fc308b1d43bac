"""
Accounts: password hashing, JWT issuing and verification, registration and
login.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arcadeboard.config import get_settings
from arcadeboard.database import get_db
from arcadeboard.exceptions import DuplicateUsernameError, InvalidCredentialsError
from arcadeboard.models import User

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token for user, valid for token_expire_days unless overridden."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.token_expire_days)
    )
    claims = {"sub": str(user.id), "username": user.username, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Return the token's claims. Raises JWTError if it is invalid or expired."""
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def register_user(db: Session, username: str, password: str) -> User:
    """
    Create an account storing only the bcrypt hash of the password.

    Raises:
        DuplicateUsernameError: the username is taken; the existing account
            is not modified.
    """
    if db.query(User).filter(User.username == username).first():
        raise DuplicateUsernameError(username)

    user = User(username=username, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration of the same name
        db.rollback()
        raise DuplicateUsernameError(username)
    db.refresh(user)
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    """
    Return the user whose credentials match.

    Raises:
        InvalidCredentialsError: unknown user or wrong password, without
            saying which.
    """
    user = db.query(User).filter(User.username == username).first() if username else None
    if user is None:
        # Spend the same hashing time as a real check
        pwd_context.dummy_verify()
        raise InvalidCredentialsError()
    if not password or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Dependency resolving the bearer token to a user, 401 otherwise."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception
    return user


def require_user_for_runs(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Run submission is public unless runs_require_auth is enabled."""
    if not get_settings().runs_require_auth:
        return None
    return get_current_user(credentials, db)

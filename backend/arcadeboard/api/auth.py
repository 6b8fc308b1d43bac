"""
Registration and login endpoints.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from arcadeboard.database import get_db
from arcadeboard.exceptions import DuplicateUsernameError, InvalidCredentialsError
from arcadeboard.schemas import (
    RegisterRequest, RegisterResponse, LoginRequest, LoginResponse, ErrorResponse
)
from arcadeboard.security import authenticate, create_access_token, register_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields or username taken"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create an account",
)
async def register(body: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user = register_user(db, body.username, body.password)
    except DuplicateUsernameError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=400, detail="Username already exists")
    except Exception as e:
        db.rollback()
        logger.error(f"Registration failed: username={body.username}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error")

    logger.info(f"User registered: id={user.id}, username={user.username}")
    return RegisterResponse()


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Log in and get a bearer token",
    description="Returns a signed JWT valid for 7 days by default.",
)
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = authenticate(db, body.username, body.password)
        token = create_access_token(user)
    except InvalidCredentialsError:
        logger.warning("Login failed: invalid credentials")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    except Exception as e:
        logger.error(f"Login failed: error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Server error")

    logger.info(f"User logged in: id={user.id}")
    return LoginResponse(token=token, username=user.username)

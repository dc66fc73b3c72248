"""Authentication API endpoints: sign-up, sign-in, session lookup and sign-out."""
from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app import crud
from app.api import deps
from app.core.security import create_access_token, revoke_token
from app.schemas.auth import (
    SessionResponse,
    Token,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from app.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_token(db: Session, user: Optional[User]) -> Token:
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not crud.user.is_active(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    # Update last login time
    crud.user.update_last_login(db, user=user)
    return Token(access_token=create_access_token(subject=user.id))


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(
    *,
    db: Session = Depends(deps.get_db),
    user_in: UserCreate,
) -> Any:
    """
    Register a new user.
    """
    if crud.user.get_by_email(db, email=user_in.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    user = crud.user.create(db, obj_in=user_in)
    logger.info(f"新用户注册: id={user.id}")
    return user


@router.post("/login", response_model=Token)
def login(
    *,
    db: Session = Depends(deps.get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Any:
    """
    OAuth2 compatible token login; the email goes in the 'username' field.
    """
    user = crud.user.authenticate(db, email=form_data.username, password=form_data.password)
    return _issue_token(db, user)


@router.post("/login/json", response_model=Token)
def login_json(
    *,
    db: Session = Depends(deps.get_db),
    user_in: UserLogin,
) -> Any:
    """
    JSON-based login endpoint (alternative to OAuth2 form).
    """
    user = crud.user.authenticate(db, email=user_in.email, password=user_in.password)
    return _issue_token(db, user)


@router.get("/session", response_model=SessionResponse)
def get_session(
    current_user: Optional[User] = Depends(deps.get_optional_current_user),
) -> Any:
    """
    Current session: {"user": {...}} when signed in, {"user": null} otherwise.
    """
    if current_user is None or not crud.user.is_active(current_user):
        return SessionResponse(user=None)
    return SessionResponse(user=current_user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(token: str = Depends(deps.get_token)) -> None:
    """
    Sign out: the token is revoked until it expires.
    """
    if not revoke_token(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Get current user information.
    """
    return current_user


@router.put("/me", response_model=UserResponse)
def update_current_user(
    *,
    db: Session = Depends(deps.get_db),
    user_in: UserUpdate,
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Update current user profile.
    """
    return crud.user.update(db, db_obj=current_user, obj_in=user_in)

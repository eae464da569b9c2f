import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from coachlink.config import settings
from coachlink.db.models import User
from coachlink.db.session import get_session
from coachlink.db.storage import Storage
from .models import TokenResponse, UserCreate, UserLogin, UserPublic
from .utils import (
    get_current_user,
    hash_password,
    start_session,
    verify_password,
)

logger = logging.getLogger("auth")

router = APIRouter(tags=["auth"])


def _public(user: User) -> UserPublic:
    return UserPublic(id=user.id, username=user.username, is_coach=user.is_coach)


@router.post("/signup", response_model=TokenResponse, status_code=201)
def signup(user: UserCreate, response: Response, db: Session = Depends(get_session)):
    storage = Storage(db)
    if storage.get_user_by_username(user.username):
        raise HTTPException(status_code=400, detail="Username already registered")

    try:
        db_user = storage.create_user(
            username=user.username,
            hashed_password=hash_password(user.password),
            is_coach=user.is_coach,
        )
        token = start_session(response, storage, db_user)
    except IntegrityError:
        # Lost a race with a concurrent signup for the same name.
        db.rollback()
        raise HTTPException(status_code=400, detail="Username already registered")
    except SQLAlchemyError as e:
        logger.error(f"Database error in signup: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    logger.info(f"Registered user {db_user.id} (coach={db_user.is_coach})")
    return TokenResponse(access_token=token, user=_public(db_user))


@router.post("/login", response_model=TokenResponse)
def login(user: UserLogin, response: Response, db: Session = Depends(get_session)):
    storage = Storage(db)
    db_user = storage.get_user_by_username(user.username)
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    try:
        token = start_session(response, storage, db_user)
    except SQLAlchemyError as e:
        logger.error(f"Database error in login: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    return TokenResponse(access_token=token, user=_public(db_user))


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        Storage(db).delete_auth_session(request.state.session_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error in logout: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    logger.info(f"User {current_user.id} logged out")
    return {"ok": True}


@router.get("/me", response_model=UserPublic)
def get_me(current_user: User = Depends(get_current_user)):
    return _public(current_user)

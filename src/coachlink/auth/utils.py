import logging
from datetime import timedelta
from typing import Optional

from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from coachlink.config import settings
from coachlink.db.models import User, utc_now
from coachlink.db.session import get_session
from coachlink.db.storage import Storage

logger = logging.getLogger("auth")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def _require_secret_key() -> str:
    if not settings.SECRET_KEY:
        raise RuntimeError(
            "SECRET_KEY must be set via environment variable for JWT operations"
        )
    return settings.SECRET_KEY


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    now = utc_now()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})
    if settings.JWT_ISSUER:
        to_encode["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE
    secret = _require_secret_key()
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    secret = _require_secret_key()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE if settings.JWT_AUDIENCE else None,
        issuer=settings.JWT_ISSUER,
        options={"verify_aud": bool(settings.JWT_AUDIENCE)},
    )


def start_session(response: Response, storage: Storage, user: User) -> str:
    """Persist a login session, set the session cookie and return the signed token."""
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    auth_session = storage.create_auth_session(user.id, utc_now() + lifetime)
    token = create_access_token({"sub": str(user.id), "sid": auth_session.id}, lifetime)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return token


def _resolve_user(request: Request, bearer: Optional[str], db: Session) -> Optional[User]:
    # An explicit Authorization header wins over the cookie.
    token = bearer or request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        payload = decode_access_token(token)
        user_id = int(payload["sub"])
        session_id = str(payload["sid"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None

    storage = Storage(db)
    auth_session = storage.get_auth_session(session_id)
    if auth_session is None or auth_session.user_id != user_id:
        return None
    request.state.session_id = session_id
    return storage.get_user(user_id)


def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_session),
) -> User:
    user = _resolve_user(request, bearer, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_session),
) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    return _resolve_user(request, bearer, db)


def require_coach(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_coach:
        raise HTTPException(status_code=403, detail="Only coaches can perform this action")
    return current_user

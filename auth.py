import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from config import settings
from database import get_db, User
from errors import APIError, ErrorCode
from schemas import UserCreate, UserLogin, UserOut, Token

logger = logging.getLogger(__name__)

auth_router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="user/login", auto_error=False)


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    pw_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8")
        )
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(data: dict):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _token_for(user: User) -> Token:
    access_token = create_access_token(data={"sub": user.id})
    return Token(access_token=access_token, user=UserOut.model_validate(user))


async def get_current_user(
    token: str | None = Depends(oauth2_scheme), db: Session = Depends(get_db)
):
    credentials_exception = APIError(
        status.HTTP_401_UNAUTHORIZED,
        ErrorCode.NOT_AUTHENTICATED,
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.InvalidTokenError:
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception
    return user


@auth_router.post("/register")
async def register(user: UserCreate, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == user.email).first()
    if db_user:
        raise APIError(status.HTTP_400_BAD_REQUEST, ErrorCode.USER_ALREADY_REGISTERED)

    new_user = User(
        email=user.email, name=user.name, password_hash=hash_password(user.password)
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("Registered user %s", new_user.id)

    return {"ok": True, "data": _token_for(new_user)}


@auth_router.post("/login")
async def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == user.email).first()
    if not db_user or not verify_password(user.password, db_user.password_hash):
        raise APIError(status.HTTP_401_UNAUTHORIZED, ErrorCode.EMAIL_OR_PASSWORD_INVALID)

    return {"ok": True, "data": _token_for(db_user)}


@auth_router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy.
    return {"ok": True}


@auth_router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {"ok": True, "data": UserOut.model_validate(current_user)}

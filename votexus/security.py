from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from votexus import config
from votexus.errors import HttpError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


class TokenUser(BaseModel):
    """Identity carried by an access token."""

    id: str
    isAdmin: bool = False


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: int = config.ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """Sign ``data`` with an expiry ``expires_delta`` minutes from now."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_delta)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> TokenUser:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        return TokenUser.model_validate(payload)
    except (JWTError, ValidationError):
        raise HttpError("Unauthorized. Invalid token.", 403)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenUser:
    if credentials is None or not credentials.credentials:
        raise HttpError("Unauthorized. No token.", 401)
    return decode_access_token(credentials.credentials)


def require_admin(user: TokenUser) -> None:
    if not user.isAdmin:
        raise HttpError("Only an admin can perform this action.", 403)

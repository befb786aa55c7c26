from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.config import ALGORITHM, SECRET_KEY

# Tokens are issued by the account service; this API only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _get_secret_key() -> str:
    if not SECRET_KEY:
        # Fail fast with a clear message instead of a generic 500
        raise RuntimeError("SECRET_KEY is not configured in the backend environment")
    return SECRET_KEY


def decode_user_id(token: str) -> Optional[int]:
    try:
        payload = jwt.decode(token, _get_secret_key(), algorithms=[ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("id")
    try:
        return int(user_id) if user_id is not None else None
    except (TypeError, ValueError):
        return None


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    user_id = decode_user_id(token)
    if user_id is None:
        raise credentials_exception
    return user_id


async def get_optional_user_id(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[int]:
    # Anonymous readers just don't get their own scores back
    if not token:
        return None
    return decode_user_id(token)

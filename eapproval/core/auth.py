"""
포털 공통 JWT 인증.

토큰 발급(로그인)은 포털 인증 서비스가 담당하고, 이 서비스는 같은 비밀키로
서명된 토큰을 검증만 한다.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from .config import settings

ALGORITHM = settings.algorithm

# Authorization 헤더에서 토큰을 꺼내는 OAuth2 스킴
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}/auth/login",
    auto_error=False,
)


def create_access_token(
    user_id: UUID | str,
    email: str,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    포털 공통 형식의 JWT 를 만든다.

    Payload:
        {
            "sub": "user_id",
            "email": "user@company.com",
            "role": "HR_MANAGER",
            "exp": 1234567890,
            "iat": 1234567890
        }
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
        "iat": now,
    }
    if role:
        to_encode["role"] = role

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[Dict]:
    """JWT 를 디코딩한다. 실패하면 None."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def get_token_payload(token: Optional[str] = Depends(oauth2_scheme)) -> Dict:
    """
    JWT payload dependency.

    Raises:
        HTTPException: 토큰이 없거나 유효하지 않은 경우 401
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="인증 정보를 확인할 수 없습니다",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    payload = decode_token(token)
    if payload is None:
        raise credentials_exception

    return payload

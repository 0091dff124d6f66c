"""
디렉터리 모듈 dependencies.
get_db 는 core 와 공유한다; get_current_user 는 JWT 의 sub 로 사용자를 찾는다.
"""
from typing import Sequence
from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from eapproval.core.auth import get_token_payload
from eapproval.core.database import get_db as core_get_db
from eapproval.modules.directory.models import User

get_db = core_get_db


def get_current_user(
    db: Session = Depends(get_db),
    payload: dict = Depends(get_token_payload),
) -> User:
    """JWT 의 현재 사용자."""
    user_id_str = payload.get("sub")
    if not user_id_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="잘못된 토큰 형식입니다",
        )
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="잘못된 user_id 형식입니다",
        )
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="사용자를 찾을 수 없습니다",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="비활성화된 사용자입니다",
        )
    return user


def require_roles(allowed_roles: Sequence[str]):
    """
    사용자 역할을 검사한다. SUPER_ADMIN 은 항상 통과.

    예:
        @router.post("/", dependencies=[Depends(require_roles(["HR_MANAGER"]))])
    """

    def _checker(user: User = Depends(get_current_user)) -> User:
        if user.is_admin or user.role in allowed_roles:
            return user
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"권한이 없습니다. 필요한 역할: {', '.join(allowed_roles)}",
        )

    return _checker

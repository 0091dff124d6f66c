"""
디렉터리 API.
접두사: /api/v1/directory
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eapproval.core.config import settings
from eapproval.modules.directory.dependencies import get_current_user, get_db
from eapproval.modules.directory.models import User
from eapproval.modules.directory.schemas import DirectoryUserOut, EmployeeProfile

router = APIRouter(prefix=f"{settings.api_v1_prefix}/directory", tags=["directory"])


def user_to_directory_entry(user: User) -> DirectoryUserOut:
    return DirectoryUserOut(
        id=str(user.id),
        name=user.name,
        email=user.email,
        title=user.title,
        role=user.role,
        employee_profile=EmployeeProfile(department=user.department),
    )


@router.get("/users", response_model=List[DirectoryUserOut])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """결재선 후보 전체 목록. 페이지네이션 없음."""
    users = (
        db.query(User)
        .filter(User.is_active == True)  # noqa: E712
        .order_by(User.department, User.name)
        .all()
    )
    return [user_to_directory_entry(u) for u in users]

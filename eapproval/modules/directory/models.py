"""
조직 구성원 디렉터리 모델.

사용자/조직 CRUD 는 포털의 다른 서비스가 담당한다. 이 테이블은 결재선 구성에
필요한 스냅샷(이름, 직함, 부서, 역할)만 보관한다.
"""
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from eapproval.core.database import Base

ROLE_EMPLOYEE = "EMPLOYEE"
ROLE_HR_MANAGER = "HR_MANAGER"
ROLE_SUPER_ADMIN = "SUPER_ADMIN"


class User(Base):
    """조직 구성원"""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=True)
    # EMPLOYEE | HR_MANAGER | SUPER_ADMIN
    role = Column(String(32), nullable=False, default=ROLE_EMPLOYEE)
    department = Column(String(255), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

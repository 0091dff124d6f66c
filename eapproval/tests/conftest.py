"""
공용 pytest fixture.

테스트는 in-memory SQLite 를 쓰고, 앱의 get_db 를 테스트 세션으로 바꿔 끼운다.
"""
import os

# eapproval 를 import 하기 전에 설정해야 한다
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eapproval.core.auth import create_access_token
from eapproval.core.database import Base, get_db
from eapproval.main import app
from eapproval.modules.approval.schemas.route import OrgMember
from eapproval.modules.directory.models import (
    ROLE_EMPLOYEE,
    ROLE_HR_MANAGER,
    ROLE_SUPER_ADMIN,
    User,
)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def member(id, name, org=None, role=ROLE_EMPLOYEE, title=""):
    """디렉터리 항목 형태로 만든 후보자."""
    return OrgMember.from_directory_entry(
        {
            "id": id,
            "name": name,
            "title": title,
            "role": role,
            "employee_profile": {"department": org},
        }
    )


@pytest.fixture
def org_members():
    """개발팀 기안자 기준의 작은 조직."""
    return [
        member("u1", "김기안", "개발팀", ROLE_EMPLOYEE, "사원"),
        member("u2", "이개발", "개발팀", ROLE_HR_MANAGER, "팀장"),
        member("u3", "박인사", "HR팀", ROLE_HR_MANAGER, "팀장"),
        member("u4", "최인사", "HR팀", ROLE_EMPLOYEE, "대리"),
        member("u5", "정인사", "HR팀", ROLE_EMPLOYEE, "사원"),
        member("u6", "한인사", "HR팀", ROLE_EMPLOYEE, "사원"),
        member("u7", "강대표", "경영지원", ROLE_SUPER_ADMIN, "대표"),
    ]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def users(db):
    """DB 에 저장된 조직 구성원 (org_members 와 같은 구조)."""
    rows = {
        "requester": User(email="req@example.com", name="김기안", title="사원", role=ROLE_EMPLOYEE, department="개발팀"),
        "dev_manager": User(email="dev@example.com", name="이개발", title="팀장", role=ROLE_HR_MANAGER, department="개발팀"),
        "hr_manager": User(email="hrm@example.com", name="박인사", title="팀장", role=ROLE_HR_MANAGER, department="HR팀"),
        "hr_staff": User(email="hrs@example.com", name="최인사", title="대리", role=ROLE_EMPLOYEE, department="HR팀"),
        "admin": User(email="ceo@example.com", name="강대표", title="대표", role=ROLE_SUPER_ADMIN, department="경영지원"),
        "outsider": User(email="out@example.com", name="오외부", title="사원", role=ROLE_EMPLOYEE, department="영업팀"),
    }
    db.add_all(rows.values())
    db.commit()
    for user in rows.values():
        db.refresh(user)
    return rows


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}

"""디렉터리 스키마."""
from typing import Optional

from pydantic import BaseModel


class EmployeeProfile(BaseModel):
    department: Optional[str] = None


class DirectoryUserOut(BaseModel):
    """포털 사용자 API 와 같은 모양: employee_profile.department 에 부서가 들어간다."""

    id: str
    name: str
    email: Optional[str] = None
    title: Optional[str] = None
    role: str
    employee_profile: Optional[EmployeeProfile] = None

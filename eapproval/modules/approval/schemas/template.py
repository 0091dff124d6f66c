"""
결재선 템플릿 스키마.

개인 템플릿(UserTemplate)은 단계 목록을 그대로 갖고, 관리자 템플릿
(AdminTemplate)은 stages[].approvers[] 구조와 별도의 유형 어휘
(CONSENT | APPROVAL | CC)를 쓴다. 두 형태는 kind 로 구분한다.
"""
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from eapproval.modules.approval.schemas.route import ApprovalStep


class UserTemplate(BaseModel):
    kind: Literal["user"] = "user"
    id: str
    name: str
    description: Optional[str] = None
    is_default: bool = False
    steps: List[ApprovalStep] = []


class AdminApprover(BaseModel):
    user_id: str
    order_index: int = 0
    is_required: Optional[bool] = None
    # 서버가 결재자 정보를 함께 내려주는 경우
    user: Optional[Dict[str, Any]] = None


class AdminStage(BaseModel):
    type: str
    order_index: int = 0
    name: Optional[str] = None
    approvers: List[AdminApprover] = []


class AdminTemplate(BaseModel):
    kind: Literal["admin"] = "admin"
    id: str
    name: str
    description: Optional[str] = None
    is_default: bool = False
    stages: List[AdminStage] = []


class UserTemplateCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: Optional[str] = None
    steps: List[ApprovalStep] = []
    is_default: bool = Field(default=False, alias="isDefault")


class AdminTemplateCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_default: bool = False
    stages: List[AdminStage] = []


class AdminTemplateUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None
    stages: Optional[List[AdminStage]] = None


class ApplyTemplateRequest(BaseModel):
    kind: Literal["user", "admin"]
    template_id: UUID

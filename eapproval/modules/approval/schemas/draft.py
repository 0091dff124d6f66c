"""기안 문서 및 결재 진행 상태 스키마."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from eapproval.modules.approval.schemas.route import ApprovalRoute


class DraftCreate(BaseModel):
    title: str
    content: Dict[str, Any] = {}
    approval_route: Optional[ApprovalRoute] = None


class DraftUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[Dict[str, Any]] = None
    approval_route: Optional[ApprovalRoute] = None


class StageApproverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    order_index: int
    is_required: bool
    status: str
    acted_at: Optional[datetime] = None
    comments: Optional[str] = None
    user_name: Optional[str] = None


class StageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    mode: str
    rule: str
    name: Optional[str] = None
    order_index: int
    status: str
    approvers: List[StageApproverOut] = []


class ActionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    action: str
    comments: Optional[str] = None
    created_at: Optional[datetime] = None


class DraftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    content: Dict[str, Any] = {}
    status: str
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DraftDetailOut(DraftOut):
    stages: List[StageOut] = []
    actions: List[ActionOut] = []


class PendingApprovalItem(BaseModel):
    draft_id: UUID
    draft_title: str
    draft_status: str
    stage_id: UUID
    stage_name: Optional[str] = None
    stage_type: str
    submitted_at: Optional[datetime] = None
    author_name: Optional[str] = None

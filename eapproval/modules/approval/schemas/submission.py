"""상신 payload 스키마 (결재 엔진이 받는 customRoute 형식)."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from eapproval.modules.approval.schemas.route import CamelModel, StepType

MODE_SEQUENTIAL = "SEQUENTIAL"
MODE_PARALLEL = "PARALLEL"
MODE_ALL = "ALL"

RULE_ALL = "ALL"
RULE_ANY = "ANY"


class CustomRouteApprover(CamelModel):
    user_id: str
    is_required: bool = True


class CustomRoute(CamelModel):
    type: StepType
    mode: str = MODE_SEQUENTIAL
    rule: str = RULE_ALL
    name: Optional[str] = None
    approvers: List[CustomRouteApprover] = []


class SubmitDraftRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    custom_route: Optional[List[CustomRoute]] = Field(default=None, alias="customRoute")
    comments: Optional[str] = None


class ApprovalActionRequest(BaseModel):
    comments: Optional[str] = None

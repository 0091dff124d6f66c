"""결재선(결재 단계) 스키마."""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

UNKNOWN_ORGANIZATION = "unknown"


class StepType(str, Enum):
    """결재 단계 유형"""

    COOPERATION = "COOPERATION"  # 협조
    APPROVAL = "APPROVAL"  # 결재
    REFERENCE = "REFERENCE"  # 참조
    RECEPTION = "RECEPTION"  # 수신
    CIRCULATION = "CIRCULATION"  # 공람


# 진행을 막지 않고 통보만 하는 유형
NOTIFY_ONLY_TYPES = (StepType.REFERENCE, StepType.RECEPTION, StepType.CIRCULATION)

STEP_TYPE_LABELS = {
    StepType.COOPERATION: "협조",
    StepType.APPROVAL: "결재",
    StepType.REFERENCE: "참조",
    StepType.RECEPTION: "수신",
    StepType.CIRCULATION: "공람",
}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ApprovalStep(CamelModel):
    """
    결재선의 한 단계(결재자 한 명).

    order 는 같은 type 안에서의 1부터 시작하는 순번이다. 결재자 정보는 결재선
    구성 시점의 스냅샷이다.
    """

    id: str
    order: int
    approver_id: str
    approver_name: str = ""
    approver_title: str = ""
    organization_name: str = ""
    type: StepType
    is_required: bool = False
    final_order: Optional[int] = None


class ApprovalRoute(CamelModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    steps: List[ApprovalStep] = []
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class OrgMember(BaseModel):
    """결재선 후보자 (디렉터리 항목을 정규화한 것)."""

    id: str
    name: str
    title: str = ""
    organization_id: str = UNKNOWN_ORGANIZATION
    organization_name: str = "Unknown"
    role: str = ""

    @classmethod
    def from_directory_entry(cls, entry: Dict[str, Any]) -> "OrgMember":
        profile = entry.get("employee_profile") or {}
        department = profile.get("department")
        return cls(
            id=str(entry["id"]),
            name=entry.get("name") or "",
            title=entry.get("title") or "",
            organization_id=department or UNKNOWN_ORGANIZATION,
            organization_name=department or "Unknown",
            role=entry.get("role") or "",
        )


class OrgNode(BaseModel):
    """수동 모드에서 보여주는 조직 트리 노드."""

    key: str
    name: str
    members: List[OrgMember] = []
    children: List["OrgNode"] = []


class RouteStepsOut(CamelModel):
    """자동 생성 / 템플릿 적용 결과."""

    steps: List[ApprovalStep] = []
    warning: Optional[str] = None

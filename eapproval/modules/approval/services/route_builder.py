"""
결재선 구성기.

결재선 설정 창 하나에 해당하는 세션 객체다. 디렉터리와 템플릿 저장소에서
데이터를 받아 세 가지 모드(템플릿 / 자동 / 수동) 중 하나로 단계 목록을 만들고,
마지막에 ApprovalRoute 로 확정한다. 모드는 서로 섞이지 않는다: 모드를 바꾸면
진행 중이던 단계 목록은 버려진다.

외부 호출 실패는 예외 대신 notices 에 남기고 이전 상태를 유지한다.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from eapproval.modules.approval.schemas.route import (
    UNKNOWN_ORGANIZATION,
    ApprovalRoute,
    ApprovalStep,
    OrgMember,
    OrgNode,
    StepType,
)
from eapproval.modules.approval.schemas.template import AdminTemplate, UserTemplate
from eapproval.modules.approval.services.auto_route import (
    AutoRouteResult,
    generate_auto_approval_steps,
)
from eapproval.modules.approval.services.providers import (
    DirectoryProvider,
    RouteTemplateStore,
)
from eapproval.modules.approval.services.route_templates import (
    find_default_template,
    template_to_steps,
)
from eapproval.modules.approval.services.step_model import (
    DIRECTION_DOWN,
    DIRECTION_UP,
    add_step,
    compute_final_order,
    has_approver,
    is_submittable,
    remove_approver,
    remove_step,
    reorder,
)
from eapproval.modules.approval.services.submission import APPROVER_REQUIRED
from eapproval.modules.approval.services.template_service import TEMPLATE_NAME_REQUIRED

logger = logging.getLogger(__name__)

UNKNOWN_ORGANIZATION_LABEL = "기타"

NOTICE_INFO = "info"
NOTICE_SUCCESS = "success"
NOTICE_WARNING = "warning"
NOTICE_ERROR = "error"


class BuilderMode(str, Enum):
    TEMPLATE = "TEMPLATE"
    AUTO = "AUTO"
    MANUAL = "MANUAL"


@dataclass
class Notice:
    level: str
    message: str


def build_organization_tree(members: Sequence[OrgMember]) -> List[OrgNode]:
    """부서별로 묶은 조직 트리. 부서가 없는 구성원은 맨 끝 '기타' 아래에 둔다."""
    groups: Dict[str, List[OrgMember]] = {}
    for member in members:
        groups.setdefault(member.organization_id, []).append(member)

    nodes = [
        OrgNode(key=f"org_{org_id}", name=group[0].organization_name, members=group)
        for org_id, group in groups.items()
        if org_id != UNKNOWN_ORGANIZATION
    ]
    if UNKNOWN_ORGANIZATION in groups:
        nodes.append(
            OrgNode(
                key=f"org_{UNKNOWN_ORGANIZATION}",
                name=UNKNOWN_ORGANIZATION_LABEL,
                members=groups[UNKNOWN_ORGANIZATION],
            )
        )
    return nodes


class RouteBuilder:
    def __init__(
        self,
        requester_id: str,
        directory: DirectoryProvider,
        templates: RouteTemplateStore,
        existing_route: Optional[ApprovalRoute] = None,
    ):
        self.requester_id = str(requester_id)
        self.directory = directory
        self.templates = templates
        self.existing_route = existing_route
        self._reset()

    def _reset(self) -> None:
        self.mode = BuilderMode.TEMPLATE
        self.steps: List[ApprovalStep] = []
        self.members: List[OrgMember] = []
        self.user_templates: List[UserTemplate] = []
        self.admin_templates: List[AdminTemplate] = []
        self.selected_template_id: Optional[str] = None
        self.pending_member: Optional[OrgMember] = None
        self.notices: List[Notice] = []

    # ---------- 상태 ----------

    @property
    def final_order(self) -> List[ApprovalStep]:
        return compute_final_order(self.steps)

    @property
    def selected_approver_ids(self) -> List[str]:
        return [s.approver_id for s in self.steps]

    @property
    def is_submittable(self) -> bool:
        return is_submittable(self.steps)

    @property
    def can_save_as_template(self) -> bool:
        return self.mode == BuilderMode.MANUAL and bool(self.steps)

    def notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))

    # ---------- 열기 / 닫기 ----------

    def open(self) -> "RouteBuilder":
        """디렉터리와 템플릿을 불러오고 시작 모드를 정한다."""
        self._load_members()
        self._load_templates()
        if self.existing_route is not None:
            self.steps = list(self.existing_route.steps)
            self.mode = BuilderMode.MANUAL
        else:
            self.mode = BuilderMode.TEMPLATE
            self._apply_default_template()
        return self

    def cancel(self) -> None:
        """저장하지 않고 작업 내용을 버린다."""
        self._reset()

    def _load_members(self) -> None:
        try:
            entries = self.directory.get_users()
            self.members = [OrgMember.from_directory_entry(e) for e in entries]
        except Exception as e:
            logger.warning(f"디렉터리 조회 실패: {e}")
            self.members = []
            self.notify(NOTICE_ERROR, "사용자 정보를 불러오는데 실패했습니다.")

    def _load_templates(self) -> None:
        try:
            self.user_templates = [
                UserTemplate.model_validate(t) for t in self.templates.get_user_approval_routes()
            ]
        except Exception as e:
            logger.warning(f"개인 결재선 템플릿 조회 실패: {e}")
            self.user_templates = []
            self.notify(NOTICE_WARNING, "개인 결재선 템플릿을 불러오지 못했습니다.")
        try:
            self.admin_templates = [
                AdminTemplate.model_validate(t)
                for t in self.templates.get_admin_approval_templates()
            ]
        except Exception as e:
            logger.warning(f"관리자 결재선 템플릿 조회 실패: {e}")
            self.admin_templates = []
            self.notify(NOTICE_WARNING, "관리자 결재선 템플릿을 불러오지 못했습니다.")

    # ---------- 모드 ----------

    def set_mode(self, mode: BuilderMode | str) -> None:
        """
        모드 전환. 단계 목록은 항상 비운 뒤
        TEMPLATE 은 기본 템플릿 자동 적용, AUTO 는 자동 생성을 다시 수행한다.
        """
        self.mode = BuilderMode(mode)
        self.steps = []
        self.selected_template_id = None
        self.pending_member = None
        if self.mode == BuilderMode.TEMPLATE:
            self._apply_default_template()
        elif self.mode == BuilderMode.AUTO:
            self.generate_auto()

    def _require_mode(self, mode: BuilderMode) -> None:
        if self.mode != mode:
            raise ValueError(f"{mode.value} 모드에서만 가능한 작업입니다.")

    # ---------- 템플릿 모드 ----------

    def _apply_default_template(self) -> None:
        if self.steps or self.selected_template_id is not None:
            return
        template = find_default_template(self.user_templates, self.admin_templates)
        if template is not None:
            logger.info(f"기본 결재선 템플릿 자동 적용: {template.name}")
            self.apply_template(template)

    def apply_template(self, template: UserTemplate | AdminTemplate) -> List[ApprovalStep]:
        self._require_mode(BuilderMode.TEMPLATE)
        self.steps = template_to_steps(template, self.members)
        self.selected_template_id = template.id
        if not self.steps:
            self.notify(NOTICE_WARNING, "템플릿에서 사용할 수 있는 결재자가 없습니다.")
        return self.steps

    def select_template(self, template_id: str) -> List[ApprovalStep]:
        template = next(
            (t for t in [*self.user_templates, *self.admin_templates] if t.id == template_id),
            None,
        )
        if template is None:
            raise ValueError("템플릿을 찾을 수 없습니다.")
        return self.apply_template(template)

    # ---------- 자동 모드 ----------

    def generate_auto(self) -> AutoRouteResult:
        self._require_mode(BuilderMode.AUTO)
        if not self.members:
            self.steps = []
            self.notify(NOTICE_WARNING, "직원 정보를 불러오지 못했습니다. 잠시 후 다시 시도해주세요.")
            return AutoRouteResult(warning=self.notices[-1].message)

        result = generate_auto_approval_steps(self.members, self.requester_id)
        self.steps = list(result.steps)
        if result.ok:
            self.notify(NOTICE_SUCCESS, f"자동으로 {len(result.steps)}명의 결재선이 생성되었습니다.")
        else:
            self.notify(NOTICE_WARNING, result.warning)
        return result

    # ---------- 수동 모드 ----------

    def organization_tree(self) -> List[OrgNode]:
        return build_organization_tree(self.members)

    def _member(self, member_id: str) -> OrgMember:
        member = next((m for m in self.members if m.id == str(member_id)), None)
        if member is None:
            raise ValueError("사용자를 찾을 수 없습니다.")
        return member

    def select_member(self, member_id: str) -> Optional[OrgMember]:
        """
        이미 선택된 사람이면 결재선에서 빼고 None.
        아니면 유형 선택 대기 상태로 두고 그 사람을 돌려준다.
        """
        self._require_mode(BuilderMode.MANUAL)
        member = self._member(member_id)
        if has_approver(self.steps, member.id):
            self.steps = remove_approver(self.steps, member.id)
            self.pending_member = None
            return None
        self.pending_member = member
        return member

    def choose_step_type(self, step_type: StepType | str) -> List[ApprovalStep]:
        if self.pending_member is None:
            raise ValueError("선택된 사용자가 없습니다.")
        member = self.pending_member
        self.pending_member = None
        return self.add(member.id, step_type)

    def add(self, member_id: str, step_type: StepType | str) -> List[ApprovalStep]:
        self._require_mode(BuilderMode.MANUAL)
        member = self._member(member_id)
        updated = add_step(self.steps, member, step_type)
        if updated is self.steps:
            self.notify(NOTICE_INFO, f"{member.name} 님은 이미 결재선에 포함되어 있습니다.")
        self.steps = updated
        return self.steps

    def remove(self, step_id: str) -> List[ApprovalStep]:
        self.steps = remove_step(self.steps, step_id)
        return self.steps

    def move_up(self, step_id: str) -> List[ApprovalStep]:
        self.steps = reorder(self.steps, step_id, DIRECTION_UP)
        return self.steps

    def move_down(self, step_id: str) -> List[ApprovalStep]:
        self.steps = reorder(self.steps, step_id, DIRECTION_DOWN)
        return self.steps

    def save_as_template(
        self, name: str, description: Optional[str] = None
    ) -> Optional[UserTemplate]:
        """현재 수동 결재선을 개인 템플릿으로 저장한다 (기본 템플릿으로는 지정하지 않음)."""
        self._require_mode(BuilderMode.MANUAL)
        if not self.steps:
            raise ValueError("저장할 결재선이 없습니다.")
        name = (name or "").strip()
        if not name:
            raise ValueError(TEMPLATE_NAME_REQUIRED)

        data = {
            "name": name,
            "description": (description or "").strip(),
            "steps": [s.to_wire() for s in self.steps],
            "isDefault": False,
        }
        try:
            saved = self.templates.save_user_approval_route(data)
            template = UserTemplate.model_validate(saved)
        except Exception as e:
            logger.error(f"결재선 템플릿 저장 실패: {e}")
            self.notify(NOTICE_ERROR, "템플릿 저장에 실패했습니다.")
            return None

        self.user_templates.append(template)
        self.notify(NOTICE_SUCCESS, "결재선 템플릿이 저장되었습니다.")
        return template

    # ---------- 확정 ----------

    def finalize(self) -> ApprovalRoute:
        if not is_submittable(self.steps):
            raise ValueError(APPROVER_REQUIRED)

        now = datetime.now(timezone.utc).isoformat()
        existing = self.existing_route
        route = ApprovalRoute(
            id=(existing.id if existing and existing.id else f"route_{uuid4().hex[:12]}"),
            user_id=self.requester_id,
            steps=list(self.steps),
            is_active=True,
            created_at=(existing.created_at if existing and existing.created_at else now),
            updated_at=now,
        )
        self.notify(NOTICE_SUCCESS, "결재선 설정이 저장되었습니다.")
        return route

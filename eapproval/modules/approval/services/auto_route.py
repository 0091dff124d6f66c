"""
자동 결재선 생성.

기안자의 조직 위치를 기준으로 디렉터리를 훑어 그럴듯한 결재선을 만든다.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from eapproval.core.config import settings
from eapproval.modules.approval.schemas.route import ApprovalStep, OrgMember, StepType
from eapproval.modules.approval.services.step_model import add_step, has_approver
from eapproval.modules.directory.models import (
    ROLE_EMPLOYEE,
    ROLE_HR_MANAGER,
    ROLE_SUPER_ADMIN,
)

logger = logging.getLogger(__name__)

AUTO_ROUTE_WARNING = (
    "자동 결재선을 생성할 수 없습니다. 상급자가 등록되지 않았거나 조직 구조를 확인해주세요."
)
REQUESTER_NOT_FOUND_WARNING = "현재 사용자 정보를 찾을 수 없습니다. 로그인을 확인해주세요."


@dataclass
class AutoRouteResult:
    steps: List[ApprovalStep] = field(default_factory=list)
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.steps)


def generate_auto_approval_steps(
    members: Sequence[OrgMember],
    requester_id: str,
    hr_organization: Optional[str] = None,
    reference_limit: Optional[int] = None,
) -> AutoRouteResult:
    hr_organization = hr_organization or settings.hr_organization_name
    if reference_limit is None:
        reference_limit = settings.auto_reference_limit

    requester = next((m for m in members if m.id == requester_id), None)
    if requester is None:
        logger.warning(f"자동 결재선: 디렉터리에 기안자 {requester_id} 가 없음")
        return AutoRouteResult(warning=REQUESTER_NOT_FOUND_WARNING)

    steps: List[ApprovalStep] = []
    same_org_managers = [
        m
        for m in members
        if m.organization_id == requester.organization_id
        and m.id != requester.id
        and m.role == ROLE_HR_MANAGER
    ]

    # 1. 같은 조직의 HR 매니저 → 협조
    if same_org_managers:
        steps = add_step(steps, same_org_managers[0], StepType.COOPERATION)

    # 2. 같은 조직의 나머지 HR 매니저 → 결재
    for manager in same_org_managers[1:]:
        steps = add_step(steps, manager, StepType.APPROVAL)

    outside_hr = requester.organization_name != hr_organization

    # 3. 기안자가 HR팀 밖이면 HR팀 HR 매니저 → 결재
    hr_manager = next(
        (
            m
            for m in members
            if m.organization_name == hr_organization
            and m.role == ROLE_HR_MANAGER
            and not has_approver(steps, m.id)
        ),
        None,
    )
    if hr_manager and outside_hr:
        steps = add_step(steps, hr_manager, StepType.APPROVAL)

    # 4. 최종 결재자: 최고 관리자
    super_admin = next(
        (m for m in members if m.role == ROLE_SUPER_ADMIN and not has_approver(steps, m.id)),
        None,
    )
    if super_admin:
        steps = add_step(steps, super_admin, StepType.APPROVAL)

    # 5. HR팀 직원 최대 두 명 → 참조
    if outside_hr:
        hr_members = [
            m
            for m in members
            if m.organization_name == hr_organization
            and m.role == ROLE_EMPLOYEE
            and not has_approver(steps, m.id)
        ][:reference_limit]
        for member in hr_members:
            steps = add_step(steps, member, StepType.REFERENCE)

    if not steps:
        logger.warning(f"자동 결재선: 기안자 {requester_id} 에 대해 생성된 단계 없음")
        return AutoRouteResult(warning=AUTO_ROUTE_WARNING)

    logger.info(f"자동 결재선: 기안자 {requester_id} → {len(steps)}명")
    return AutoRouteResult(steps=steps)

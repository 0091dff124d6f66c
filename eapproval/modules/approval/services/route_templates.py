"""
결재선 템플릿 → 단계 목록 정규화.

개인 템플릿과 관리자 템플릿의 서로 다른 어휘는 이 모듈에서만 변환한다.
"""
import logging
from typing import Dict, List, Optional, Sequence

from eapproval.modules.approval.schemas.route import ApprovalStep, OrgMember, StepType
from eapproval.modules.approval.schemas.template import (
    AdminApprover,
    AdminTemplate,
    UserTemplate,
)
from eapproval.modules.approval.services.step_model import (
    has_approver,
    new_step_id,
    renumber,
)
from eapproval.modules.directory.models import ROLE_HR_MANAGER, ROLE_SUPER_ADMIN

logger = logging.getLogger(__name__)

# 관리자 템플릿 단계 유형 → 결재 단계 유형
ADMIN_STAGE_TYPES = {
    "CONSENT": StepType.COOPERATION,
    "APPROVAL": StepType.APPROVAL,
    "CC": StepType.REFERENCE,
}

# 관리자 템플릿 stage 간 순서를 평탄화된 order 에서도 유지하기 위한 간격
STAGE_ORDER_SPAN = 100


def map_admin_stage_type(stage_type: Optional[str]) -> StepType:
    return ADMIN_STAGE_TYPES.get((stage_type or "").upper(), StepType.APPROVAL)


def _step_for(member: OrgMember, step_type: StepType, order: int, is_required: bool) -> ApprovalStep:
    return ApprovalStep(
        id=new_step_id(),
        order=order,
        approver_id=member.id,
        approver_name=member.name,
        approver_title=member.title,
        organization_name=member.organization_name,
        type=step_type,
        is_required=is_required,
    )


def _resolve_approver(
    approver: AdminApprover, members_by_id: Dict[str, OrgMember]
) -> Optional[OrgMember]:
    """서버가 함께 준 user 정보를 우선 쓰고, 없으면 디렉터리에서 찾는다."""
    if approver.user:
        member = OrgMember.from_directory_entry({"id": approver.user_id, **approver.user})
        organization_name = approver.user.get("organizationName")
        if organization_name:
            member = member.model_copy(update={"organization_name": organization_name})
        return member
    return members_by_id.get(approver.user_id)


def clone_user_template(template: UserTemplate) -> List[ApprovalStep]:
    """단계를 그대로 복제하고 id 만 새로 만든다."""
    return [
        step.model_copy(update={"id": new_step_id(), "final_order": None})
        for step in template.steps
    ]


def expand_admin_template(
    template: AdminTemplate, members: Sequence[OrgMember]
) -> List[ApprovalStep]:
    """
    stages[].approvers[] 를 평탄한 단계 목록으로 펼친다.

    order = stage.order_index * 100 + approver.order_index + 1 로 정렬하므로, 앞 stage 의
    결재자는 결재자 수와 상관없이 뒤 stage 보다 앞에 온다. 정렬 후 type 별로 1..n 으로
    다시 번호를 매긴다. 여러 stage 에 같은 사람이 있으면 앞 stage 의 것만 남긴다.
    """
    members_by_id = {m.id: m for m in members}
    candidates = []
    for stage in template.stages:
        step_type = map_admin_stage_type(stage.type)
        for approver in stage.approvers:
            member = _resolve_approver(approver, members_by_id)
            if member is None:
                logger.warning(
                    f"템플릿 '{template.name}': 결재자 {approver.user_id} 를 디렉터리에서 찾을 수 없음"
                )
                continue
            order = stage.order_index * STAGE_ORDER_SPAN + approver.order_index + 1
            candidates.append(
                _step_for(member, step_type, order, approver.is_required is not False)
            )
    candidates.sort(key=lambda s: s.order)

    steps: List[ApprovalStep] = []
    for step in candidates:
        if has_approver(steps, step.approver_id):
            logger.warning(
                f"템플릿 '{template.name}': 결재자 {step.approver_id} 가 중복되어 {step.type.value} 단계는 건너뜀"
            )
            continue
        steps.append(step)
    return renumber(steps)


def fallback_route(members: Sequence[OrgMember]) -> List[ApprovalStep]:
    """
    기본 결재선: HR 매니저(협조) → 최고 관리자(결재).
    해당 역할의 구성원이 없으면 그 단계는 빠진다.
    """
    steps: List[ApprovalStep] = []
    hr_manager = next((m for m in members if m.role == ROLE_HR_MANAGER), None)
    if hr_manager:
        steps.append(_step_for(hr_manager, StepType.COOPERATION, 1, True))
    admin = next((m for m in members if m.role == ROLE_SUPER_ADMIN), None)
    if admin:
        steps.append(_step_for(admin, StepType.APPROVAL, 1, True))
    return steps


def template_to_steps(
    template: UserTemplate | AdminTemplate, members: Sequence[OrgMember]
) -> List[ApprovalStep]:
    """템플릿을 새 단계 목록으로. 쓸 수 있는 단계가 없으면 기본 결재선."""
    if isinstance(template, AdminTemplate):
        steps = expand_admin_template(template, members)
    else:
        steps = clone_user_template(template)

    if not steps:
        logger.info(f"템플릿 '{template.name}' 에 단계가 없어 기본 결재선을 생성합니다")
        return fallback_route(members)
    return steps


def find_default_template(
    user_templates: Sequence[UserTemplate], admin_templates: Sequence[AdminTemplate]
) -> UserTemplate | AdminTemplate | None:
    """개인 기본 템플릿이 관리자 기본 템플릿보다 우선한다."""
    for template in user_templates:
        if template.is_default:
            return template
    for template in admin_templates:
        if template.is_default:
            return template
    return None

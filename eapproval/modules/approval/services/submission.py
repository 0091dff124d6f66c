"""
결재선 → 상신 payload 변환.

단계 하나가 결재자 한 명짜리 stage 하나가 된다. 진행 단계(협조 → 결재)는
최종 진행 순서대로, 통보 단계(참조/수신/공람)는 그 뒤에 유형별 order 순으로 온다.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from eapproval.core.config import settings
from eapproval.modules.approval.schemas.route import (
    NOTIFY_ONLY_TYPES,
    STEP_TYPE_LABELS,
    ApprovalRoute,
    ApprovalStep,
    StepType,
)
from eapproval.modules.approval.schemas.submission import (
    MODE_ALL,
    MODE_PARALLEL,
    MODE_SEQUENTIAL,
    RULE_ALL,
    CustomRoute,
    CustomRouteApprover,
)
from eapproval.modules.approval.services.providers import SubmissionGateway
from eapproval.modules.approval.services.step_model import (
    compute_final_order,
    is_submittable,
    steps_by_type,
)

logger = logging.getLogger(__name__)

ROUTE_REQUIRED = "결재선을 설정해주세요"
APPROVER_REQUIRED = "최소 1명의 결재자를 선택해주세요."


def _submission_sequence(steps: Sequence[ApprovalStep]) -> List[ApprovalStep]:
    sequence = compute_final_order(steps)
    for step_type in NOTIFY_ONLY_TYPES:
        sequence.extend(steps_by_type(steps, step_type))
    return sequence


def to_submission_payload(
    steps: Sequence[ApprovalStep],
    approval_mode: str = MODE_SEQUENTIAL,
    other_mode: str = MODE_PARALLEL,
) -> List[CustomRoute]:
    """결재 stage 는 approval_mode, 나머지는 other_mode (PARALLEL 또는 ALL)."""
    if other_mode not in (MODE_PARALLEL, MODE_ALL):
        raise ValueError(f"지원하지 않는 진행 방식: {other_mode}")
    return [
        CustomRoute(
            type=step.type,
            mode=approval_mode if step.type == StepType.APPROVAL else other_mode,
            rule=RULE_ALL,
            name=STEP_TYPE_LABELS[step.type],
            approvers=[
                CustomRouteApprover(
                    user_id=step.approver_id,
                    is_required=step.is_required or step.type == StepType.APPROVAL,
                )
            ],
        )
        for step in _submission_sequence(steps)
    ]


def validate_route(route: Optional[ApprovalRoute]) -> ApprovalRoute:
    if route is None or not route.steps:
        raise ValueError(ROUTE_REQUIRED)
    if not is_submittable(route.steps):
        raise ValueError(APPROVER_REQUIRED)
    return route


def build_submit_request(
    route: Optional[ApprovalRoute],
    comments: Optional[str] = None,
    approval_mode: str = MODE_SEQUENTIAL,
    other_mode: str = MODE_PARALLEL,
) -> Dict[str, Any]:
    """결재선이 없거나 결재자가 없으면 ValueError. 결재선 없는 상신은 허용하지 않는다."""
    route = validate_route(route)
    custom_route = to_submission_payload(route.steps, approval_mode, other_mode)
    return {
        "customRoute": [c.to_wire() for c in custom_route],
        "comments": comments or settings.default_submit_comment,
    }


def submit_route(
    gateway: SubmissionGateway,
    draft_id: str,
    route: Optional[ApprovalRoute],
    comments: Optional[str] = None,
) -> Dict[str, Any]:
    request = build_submit_request(route, comments)
    logger.info(f"기안 {draft_id} 상신: {len(request['customRoute'])}개 단계")
    return gateway.submit_draft(draft_id, request)

"""
결재선 단계 목록 연산.

모든 함수는 입력 목록을 변경하지 않고 새 목록을 돌려준다. 단계는 type 별로
나뉘고, 각 type 안에서 order 는 항상 1..n 으로 빈틈없이 유지된다.
"""
from typing import Iterable, List, Sequence
from uuid import uuid4

from eapproval.modules.approval.schemas.route import (
    ApprovalStep,
    OrgMember,
    StepType,
)

DIRECTION_UP = "up"
DIRECTION_DOWN = "down"


def new_step_id() -> str:
    return f"step_{uuid4().hex[:12]}"


def steps_by_type(steps: Iterable[ApprovalStep], step_type: StepType) -> List[ApprovalStep]:
    """해당 type 의 단계들을 order 순으로."""
    return sorted((s for s in steps if s.type == step_type), key=lambda s: s.order)


def has_approver(steps: Iterable[ApprovalStep], approver_id: str) -> bool:
    return any(s.approver_id == approver_id for s in steps)


def is_submittable(steps: Iterable[ApprovalStep]) -> bool:
    """결재(APPROVAL) 단계가 하나 이상 있어야 상신할 수 있다."""
    return any(s.type == StepType.APPROVAL for s in steps)


def _renumber_partition(
    steps: Sequence[ApprovalStep], step_type: StepType
) -> List[ApprovalStep]:
    """
    한 type 의 order 를 1..n 으로 다시 매긴다.
    목록 안에서 그 type 이 차지하던 자리는 그대로 두고 내용만 order 순으로 채운다.
    """
    positions = [i for i, s in enumerate(steps) if s.type == step_type]
    ordered = sorted(positions, key=lambda i: (steps[i].order, i))
    result = list(steps)
    for n, (pos, src) in enumerate(zip(positions, ordered), start=1):
        step = steps[src]
        result[pos] = step if step.order == n else step.model_copy(update={"order": n})
    return result


def renumber(steps: Sequence[ApprovalStep]) -> List[ApprovalStep]:
    """모든 type 의 order 를 정규화한다."""
    result = list(steps)
    for step_type in StepType:
        result = _renumber_partition(result, step_type)
    return result


def add_step(
    steps: List[ApprovalStep],
    candidate: OrgMember,
    step_type: StepType | str,
    step_id: str | None = None,
) -> List[ApprovalStep]:
    """
    후보자를 step_type 단계로 추가한다.

    이미 결재선 어디엔가 있는 결재자라면 입력 목록을 그대로 돌려준다
    (같은 사람을 두 번 지정할 수 없다).
    """
    step_type = StepType(step_type)
    if has_approver(steps, candidate.id):
        return steps

    new_step = ApprovalStep(
        id=step_id or new_step_id(),
        order=len(steps_by_type(steps, step_type)) + 1,
        approver_id=candidate.id,
        approver_name=candidate.name,
        approver_title=candidate.title,
        organization_name=candidate.organization_name,
        type=step_type,
        is_required=step_type == StepType.APPROVAL,
    )
    return [*steps, new_step]


def remove_step(steps: List[ApprovalStep], step_id: str) -> List[ApprovalStep]:
    """단계를 지우고 같은 type 의 나머지만 다시 번호를 매긴다."""
    target = next((s for s in steps if s.id == step_id), None)
    if target is None:
        return steps
    remaining = [s for s in steps if s.id != step_id]
    return _renumber_partition(remaining, target.type)


def remove_approver(steps: List[ApprovalStep], approver_id: str) -> List[ApprovalStep]:
    target = next((s for s in steps if s.approver_id == approver_id), None)
    if target is None:
        return steps
    return remove_step(steps, target.id)


def reorder(steps: List[ApprovalStep], step_id: str, direction: str) -> List[ApprovalStep]:
    """같은 type 안에서 바로 앞/뒤 단계와 자리를 바꾼다. 경계에서는 아무 일도 없다."""
    if direction not in (DIRECTION_UP, DIRECTION_DOWN):
        raise ValueError(f"알 수 없는 이동 방향: {direction}")

    target = next((s for s in steps if s.id == step_id), None)
    if target is None:
        return steps

    partition = steps_by_type(steps, target.type)
    idx = next(i for i, s in enumerate(partition) if s.id == step_id)
    swap_with = idx - 1 if direction == DIRECTION_UP else idx + 1
    if swap_with < 0 or swap_with >= len(partition):
        return steps

    partition[idx], partition[swap_with] = partition[swap_with], partition[idx]
    renumbered = {
        s.id: s.model_copy(update={"order": n}) for n, s in enumerate(partition, start=1)
    }

    positions = [i for i, s in enumerate(steps) if s.type == target.type]
    result = list(steps)
    for pos, step in zip(positions, partition):
        result[pos] = renumbered[step.id]
    return result


def compute_final_order(steps: Iterable[ApprovalStep]) -> List[ApprovalStep]:
    """
    실제 진행 순서: 협조 단계(order 순) 다음 결재 단계(order 순).
    참조/수신/공람은 진행을 막지 않으므로 포함하지 않는다.
    """
    steps = list(steps)
    sequence = steps_by_type(steps, StepType.COOPERATION) + steps_by_type(
        steps, StepType.APPROVAL
    )
    return [
        s.model_copy(update={"final_order": n}) for n, s in enumerate(sequence, start=1)
    ]

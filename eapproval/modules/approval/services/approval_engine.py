"""결재 엔진: 상신된 customRoute 를 단계별로 진행시키는 state machine."""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from eapproval.modules.approval.models import (
    ACTION_APPROVE,
    ACTION_CANCEL,
    ACTION_COMMENT,
    ACTION_REJECT,
    ACTION_SUBMIT,
    DRAFT_STATUS_APPROVED,
    DRAFT_STATUS_CANCELLED,
    DRAFT_STATUS_DRAFT,
    DRAFT_STATUS_IN_PROGRESS,
    DRAFT_STATUS_REJECTED,
    STAGE_APPROVED,
    STAGE_NOTIFIED,
    STAGE_PENDING,
    STAGE_REJECTED,
    STAGE_SKIPPED,
    STAGE_WAITING,
    ApprovalAction,
    ApprovalDraft,
    ApprovalStage,
    ApprovalStageApprover,
)
from eapproval.modules.approval.schemas.route import NOTIFY_ONLY_TYPES, StepType
from eapproval.modules.approval.schemas.submission import (
    MODE_SEQUENTIAL,
    RULE_ANY,
    CustomRoute,
)
from eapproval.modules.approval.services.submission import APPROVER_REQUIRED
from eapproval.modules.directory.models import User

logger = logging.getLogger(__name__)

DECISION_APPROVED = STAGE_APPROVED
DECISION_REJECTED = STAGE_REJECTED

_NOTIFY_ONLY_VALUES = {t.value for t in NOTIFY_ONLY_TYPES}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _record(db: Session, draft: ApprovalDraft, user_id: UUID, action: str, comments: Optional[str]):
    db.add(
        ApprovalAction(
            draft_id=draft.id,
            user_id=user_id,
            action=action,
            comments=comments,
            created_at=_now(),
        )
    )


def _parse_user_id(db: Session, raw: str) -> UUID:
    try:
        user_id = UUID(str(raw))
    except ValueError:
        raise ValueError(f"잘못된 결재자 ID 입니다: {raw}")
    if not db.query(User).filter(User.id == user_id).first():
        raise ValueError(f"결재자를 찾을 수 없습니다: {raw}")
    return user_id


def submit_draft(
    db: Session,
    draft: ApprovalDraft,
    custom_route: Sequence[CustomRoute],
    user_id: UUID,
    comments: Optional[str] = None,
) -> ApprovalDraft:
    """
    기안을 상신한다. customRoute 항목 하나가 단계 하나가 된다.
    반려된 문서를 다시 상신하면 이전 단계는 모두 버린다.
    """
    if draft.status not in (DRAFT_STATUS_DRAFT, DRAFT_STATUS_REJECTED):
        raise ValueError("임시저장 또는 반려 상태의 문서만 상신할 수 있습니다")
    if not any(c.type == StepType.APPROVAL and c.approvers for c in custom_route):
        raise ValueError(APPROVER_REQUIRED)

    draft.stages.clear()
    db.flush()

    for index, entry in enumerate(custom_route, start=1):
        stage = ApprovalStage(
            type=entry.type.value,
            mode=entry.mode,
            rule=entry.rule,
            name=entry.name,
            order_index=index,
            status=STAGE_WAITING,
        )
        for approver_index, approver in enumerate(entry.approvers, start=1):
            stage.approvers.append(
                ApprovalStageApprover(
                    user_id=_parse_user_id(db, approver.user_id),
                    order_index=approver_index,
                    is_required=approver.is_required,
                    status=STAGE_WAITING,
                )
            )
        if stage.type in _NOTIFY_ONLY_VALUES:
            stage.status = STAGE_NOTIFIED
            for a in stage.approvers:
                a.status = STAGE_NOTIFIED
        draft.stages.append(stage)

    now = _now()
    draft.status = DRAFT_STATUS_IN_PROGRESS
    draft.submitted_at = now
    draft.completed_at = None
    _record(db, draft, user_id, ACTION_SUBMIT, comments)
    _advance_to_next_stage(draft, now)

    db.commit()
    db.refresh(draft)
    logger.info(f"기안 상신: {draft.id} ({len(custom_route)}개 단계)")
    return draft


def current_stage(draft: ApprovalDraft) -> Optional[ApprovalStage]:
    return next((s for s in draft.stages if s.status == STAGE_PENDING), None)


def process_decision(
    db: Session,
    draft: ApprovalDraft,
    approver_id: UUID,
    decision: str,
    comments: Optional[str] = None,
) -> ApprovalDraft:
    """현재 단계 결재자의 승인/반려를 처리한다."""
    if decision not in (DECISION_APPROVED, DECISION_REJECTED):
        raise ValueError(f"알 수 없는 결정입니다: {decision}")
    if draft.status != DRAFT_STATUS_IN_PROGRESS:
        raise ValueError("결재 진행 중인 문서가 아닙니다")

    stage = current_stage(draft)
    approver = None
    if stage is not None:
        approver = next(
            (a for a in stage.approvers if a.user_id == approver_id and a.status == STAGE_PENDING),
            None,
        )
    if approver is None:
        raise ValueError("현재 결재 차례가 아니거나 이미 처리한 문서입니다")

    now = _now()
    approver.status = decision
    approver.acted_at = now
    approver.comments = comments

    if decision == DECISION_REJECTED:
        _record(db, draft, approver_id, ACTION_REJECT, comments)
        _skip_open_approvers(stage)
        stage.status = STAGE_REJECTED
        draft.status = DRAFT_STATUS_REJECTED
        draft.completed_at = now
        logger.info(f"기안 반려: {draft.id}")
    else:
        _record(db, draft, approver_id, ACTION_APPROVE, comments)
        if _is_stage_complete(stage):
            _skip_open_approvers(stage)
            stage.status = STAGE_APPROVED
            _advance_to_next_stage(draft, now)
        elif stage.mode == MODE_SEQUENTIAL:
            _activate_next_approver(stage)

    db.commit()
    db.refresh(draft)
    return draft


def add_comment(db: Session, draft: ApprovalDraft, user_id: UUID, comments: Optional[str]) -> ApprovalAction:
    comments = (comments or "").strip()
    if not comments:
        raise ValueError("의견을 입력해주세요")
    action = ApprovalAction(
        draft_id=draft.id,
        user_id=user_id,
        action=ACTION_COMMENT,
        comments=comments,
        created_at=_now(),
    )
    db.add(action)
    db.commit()
    db.refresh(action)
    return action


def cancel_draft(db: Session, draft: ApprovalDraft, user_id: UUID, comments: Optional[str] = None) -> ApprovalDraft:
    """기안 회수/취소."""
    if draft.status in (DRAFT_STATUS_APPROVED, DRAFT_STATUS_CANCELLED):
        raise ValueError("현재 상태에서는 문서를 취소할 수 없습니다")

    stage = current_stage(draft)
    if stage is not None:
        _skip_open_approvers(stage)
        stage.status = STAGE_SKIPPED

    draft.status = DRAFT_STATUS_CANCELLED
    draft.completed_at = _now()
    _record(db, draft, user_id, ACTION_CANCEL, comments)
    db.commit()
    db.refresh(draft)
    logger.info(f"기안 취소: {draft.id}")
    return draft


def is_participant(draft: ApprovalDraft, user_id: UUID) -> bool:
    if draft.user_id == user_id:
        return True
    return any(a.user_id == user_id for s in draft.stages for a in s.approvers)


def pending_for_user(db: Session, user_id: UUID) -> List[Tuple[ApprovalDraft, ApprovalStage]]:
    """지금 이 사용자의 결재를 기다리는 (기안, 단계) 목록."""
    rows = (
        db.query(ApprovalDraft, ApprovalStage)
        .join(ApprovalStage, ApprovalStage.draft_id == ApprovalDraft.id)
        .join(ApprovalStageApprover, ApprovalStageApprover.stage_id == ApprovalStage.id)
        .filter(
            ApprovalDraft.status == DRAFT_STATUS_IN_PROGRESS,
            ApprovalStage.status == STAGE_PENDING,
            ApprovalStageApprover.user_id == user_id,
            ApprovalStageApprover.status == STAGE_PENDING,
        )
        .order_by(ApprovalDraft.submitted_at)
        .all()
    )
    return [(draft, stage) for draft, stage in rows]


def _is_stage_complete(stage: ApprovalStage) -> bool:
    if stage.rule == RULE_ANY:
        return any(a.status == STAGE_APPROVED for a in stage.approvers)
    return all(a.status == STAGE_APPROVED for a in stage.approvers if a.is_required)


def _skip_open_approvers(stage: ApprovalStage) -> None:
    for a in stage.approvers:
        if a.status in (STAGE_WAITING, STAGE_PENDING):
            a.status = STAGE_SKIPPED


def _activate_next_approver(stage: ApprovalStage) -> None:
    waiting = next((a for a in stage.approvers if a.status == STAGE_WAITING), None)
    if waiting is not None:
        waiting.status = STAGE_PENDING


def _activate_stage(stage: ApprovalStage) -> None:
    stage.status = STAGE_PENDING
    if stage.mode == MODE_SEQUENTIAL:
        _activate_next_approver(stage)
    else:
        for a in stage.approvers:
            if a.status == STAGE_WAITING:
                a.status = STAGE_PENDING


def _advance_to_next_stage(draft: ApprovalDraft, now: datetime) -> None:
    """다음 대기 단계를 활성화하거나, 남은 단계가 없으면 결재 완료."""
    for stage in draft.stages:
        if stage.status != STAGE_WAITING:
            continue
        if not stage.approvers:
            stage.status = STAGE_SKIPPED
            continue
        _activate_stage(stage)
        return

    draft.status = DRAFT_STATUS_APPROVED
    draft.completed_at = now
    logger.info(f"기안 결재 완료: {draft.id}")

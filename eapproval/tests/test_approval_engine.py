"""결재 엔진 테스트."""
import pytest

from eapproval.modules.approval.models import (
    ACTION_APPROVE,
    ACTION_CANCEL,
    ACTION_COMMENT,
    ACTION_SUBMIT,
    DRAFT_STATUS_APPROVED,
    DRAFT_STATUS_CANCELLED,
    DRAFT_STATUS_IN_PROGRESS,
    DRAFT_STATUS_REJECTED,
    STAGE_APPROVED,
    STAGE_NOTIFIED,
    STAGE_PENDING,
    STAGE_REJECTED,
    STAGE_SKIPPED,
    STAGE_WAITING,
    ApprovalDraft,
)
from eapproval.modules.approval.schemas.route import StepType
from eapproval.modules.approval.schemas.submission import (
    MODE_PARALLEL,
    MODE_SEQUENTIAL,
    RULE_ALL,
    RULE_ANY,
    CustomRoute,
    CustomRouteApprover,
)
from eapproval.modules.approval.services import approval_engine
from eapproval.modules.approval.services.approval_engine import (
    DECISION_APPROVED,
    DECISION_REJECTED,
)


def _stage(step_type, *approvers, mode=MODE_SEQUENTIAL, rule=RULE_ALL, required=True):
    return CustomRoute(
        type=step_type,
        mode=mode,
        rule=rule,
        approvers=[CustomRouteApprover(user_id=str(u.id), is_required=required) for u in approvers],
    )


@pytest.fixture
def draft(db, users):
    d = ApprovalDraft(user_id=users["requester"].id, title="연차 신청", content={"days": 2})
    db.add(d)
    db.commit()
    db.refresh(d)
    return d


def _statuses(draft):
    return [s.status for s in draft.stages]


def test_submit_activates_first_gating_stage(db, users, draft):
    route = [
        _stage(StepType.COOPERATION, users["dev_manager"], mode=MODE_PARALLEL),
        _stage(StepType.APPROVAL, users["admin"]),
        _stage(StepType.REFERENCE, users["hr_staff"], mode=MODE_PARALLEL, required=False),
    ]

    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id, "확인 부탁드립니다")

    assert draft.status == DRAFT_STATUS_IN_PROGRESS
    assert draft.submitted_at is not None
    assert _statuses(draft) == [STAGE_PENDING, STAGE_WAITING, STAGE_NOTIFIED]
    assert draft.stages[2].approvers[0].status == STAGE_NOTIFIED
    assert [a.action for a in draft.actions] == [ACTION_SUBMIT]
    assert draft.actions[0].comments == "확인 부탁드립니다"


def test_full_approval(db, users, draft):
    route = [
        _stage(StepType.COOPERATION, users["dev_manager"]),
        _stage(StepType.APPROVAL, users["hr_manager"]),
        _stage(StepType.APPROVAL, users["admin"]),
    ]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)

    for key in ("dev_manager", "hr_manager", "admin"):
        draft = approval_engine.process_decision(db, draft, users[key].id, DECISION_APPROVED)

    assert draft.status == DRAFT_STATUS_APPROVED
    assert draft.completed_at is not None
    assert _statuses(draft) == [STAGE_APPROVED] * 3
    assert [a.action for a in draft.actions].count(ACTION_APPROVE) == 3


def test_only_current_approver_can_decide(db, users, draft):
    route = [
        _stage(StepType.COOPERATION, users["dev_manager"]),
        _stage(StepType.APPROVAL, users["admin"]),
    ]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)

    with pytest.raises(ValueError):
        approval_engine.process_decision(db, draft, users["admin"].id, DECISION_APPROVED)
    with pytest.raises(ValueError):
        approval_engine.process_decision(db, draft, users["outsider"].id, DECISION_APPROVED)


def test_sequential_stage_activates_approvers_one_by_one(db, users, draft):
    route = [_stage(StepType.APPROVAL, users["hr_manager"], users["admin"])]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)

    approvers = draft.stages[0].approvers
    assert [a.status for a in approvers] == [STAGE_PENDING, STAGE_WAITING]

    draft = approval_engine.process_decision(db, draft, users["hr_manager"].id, DECISION_APPROVED)

    assert draft.status == DRAFT_STATUS_IN_PROGRESS
    assert [a.status for a in draft.stages[0].approvers] == [STAGE_APPROVED, STAGE_PENDING]


def test_parallel_any_completes_on_first_approval(db, users, draft):
    route = [
        _stage(StepType.APPROVAL, users["hr_manager"], users["admin"], mode=MODE_PARALLEL, rule=RULE_ANY),
    ]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)
    assert [a.status for a in draft.stages[0].approvers] == [STAGE_PENDING, STAGE_PENDING]

    draft = approval_engine.process_decision(db, draft, users["admin"].id, DECISION_APPROVED)

    assert draft.status == DRAFT_STATUS_APPROVED
    assert [a.status for a in draft.stages[0].approvers] == [STAGE_SKIPPED, STAGE_APPROVED]


def test_reject_then_resubmit_discards_previous_stages(db, users, draft):
    route = [_stage(StepType.APPROVAL, users["admin"])]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)
    first_stage_id = draft.stages[0].id

    draft = approval_engine.process_decision(db, draft, users["admin"].id, DECISION_REJECTED, "사유 보완")

    assert draft.status == DRAFT_STATUS_REJECTED
    assert draft.stages[0].status == STAGE_REJECTED
    assert draft.stages[0].approvers[0].comments == "사유 보완"

    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)

    assert draft.status == DRAFT_STATUS_IN_PROGRESS
    assert len(draft.stages) == 1
    assert draft.stages[0].id != first_stage_id
    assert draft.stages[0].status == STAGE_PENDING


def test_cannot_submit_twice(db, users, draft):
    route = [_stage(StepType.APPROVAL, users["admin"])]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)

    with pytest.raises(ValueError):
        approval_engine.submit_draft(db, draft, route, users["requester"].id)


def test_submit_requires_approval_stage(db, users, draft):
    with pytest.raises(ValueError):
        approval_engine.submit_draft(
            db, draft, [_stage(StepType.COOPERATION, users["dev_manager"])], users["requester"].id
        )


def test_submit_rejects_unknown_approver(db, users, draft):
    route = [
        CustomRoute(type=StepType.APPROVAL, approvers=[CustomRouteApprover(user_id="not-a-uuid")]),
    ]
    with pytest.raises(ValueError):
        approval_engine.submit_draft(db, draft, route, users["requester"].id)


def test_cancel(db, users, draft):
    route = [_stage(StepType.APPROVAL, users["admin"])]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)

    draft = approval_engine.cancel_draft(db, draft, users["requester"].id)

    assert draft.status == DRAFT_STATUS_CANCELLED
    assert draft.stages[0].status == STAGE_SKIPPED
    assert draft.actions[-1].action == ACTION_CANCEL
    with pytest.raises(ValueError):
        approval_engine.cancel_draft(db, draft, users["requester"].id)


def test_comment(db, users, draft):
    action = approval_engine.add_comment(db, draft, users["requester"].id, " 참고 바랍니다 ")

    assert action.action == ACTION_COMMENT
    assert action.comments == "참고 바랍니다"
    with pytest.raises(ValueError):
        approval_engine.add_comment(db, draft, users["requester"].id, "  ")


def test_is_participant(db, users, draft):
    route = [_stage(StepType.APPROVAL, users["admin"])]
    draft = approval_engine.submit_draft(db, draft, route, users["requester"].id)

    assert approval_engine.is_participant(draft, users["requester"].id)
    assert approval_engine.is_participant(draft, users["admin"].id)
    assert not approval_engine.is_participant(draft, users["outsider"].id)


def test_pending_for_user(db, users, draft):
    route = [
        _stage(StepType.COOPERATION, users["dev_manager"]),
        _stage(StepType.APPROVAL, users["admin"]),
    ]
    approval_engine.submit_draft(db, draft, route, users["requester"].id)

    assert [d.id for d, _ in approval_engine.pending_for_user(db, users["dev_manager"].id)] == [draft.id]
    assert approval_engine.pending_for_user(db, users["admin"].id) == []

    approval_engine.process_decision(db, draft, users["dev_manager"].id, DECISION_APPROVED)

    rows = approval_engine.pending_for_user(db, users["admin"].id)
    assert [(d.id, s.type) for d, s in rows] == [(draft.id, "APPROVAL")]

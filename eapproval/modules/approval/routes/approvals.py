"""내 결재 대기함."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eapproval.modules.approval.dependencies import get_current_user, get_db
from eapproval.modules.approval.schemas.draft import PendingApprovalItem
from eapproval.modules.approval.services.approval_engine import pending_for_user
from eapproval.modules.directory.models import User

router = APIRouter(tags=["approval-pending"])


@router.get("/pending", response_model=List[PendingApprovalItem])
def my_pending_approvals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = pending_for_user(db, current_user.id)
    author_ids = {draft.user_id for draft, _ in rows}
    authors = {}
    if author_ids:
        authors = {u.id: u.name for u in db.query(User).filter(User.id.in_(author_ids)).all()}
    return [
        PendingApprovalItem(
            draft_id=draft.id,
            draft_title=draft.title,
            draft_status=draft.status,
            stage_id=stage.id,
            stage_name=stage.name,
            stage_type=stage.type,
            submitted_at=draft.submitted_at,
            author_name=authors.get(draft.user_id),
        )
        for draft, stage in rows
    ]

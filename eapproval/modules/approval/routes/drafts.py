"""기안 문서 라우트: 작성, 결재선 저장, 상신, 결재 처리."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from eapproval.core.config import settings
from eapproval.modules.approval.dependencies import get_current_user, get_db
from eapproval.modules.approval.models import (
    DRAFT_STATUS_DRAFT,
    DRAFT_STATUS_REJECTED,
    ApprovalDraft,
)
from eapproval.modules.approval.schemas.draft import (
    ActionOut,
    DraftCreate,
    DraftDetailOut,
    DraftOut,
    DraftUpdate,
)
from eapproval.modules.approval.schemas.submission import (
    ApprovalActionRequest,
    SubmitDraftRequest,
)
from eapproval.modules.approval.services import approval_engine
from eapproval.modules.approval.services.draft_content import (
    content_fields,
    embed_route,
    extract_route,
)
from eapproval.modules.approval.services.submission import (
    to_submission_payload,
    validate_route,
)
from eapproval.modules.directory.models import User

router = APIRouter(prefix="/drafts", tags=["approval-drafts"])


def _get_draft(db: Session, draft_id: UUID) -> ApprovalDraft:
    draft = db.query(ApprovalDraft).filter(ApprovalDraft.id == draft_id).first()
    if not draft:
        raise HTTPException(status_code=404, detail="문서를 찾을 수 없습니다")
    return draft


def _require_author(draft: ApprovalDraft, user: User, detail: str) -> None:
    if draft.user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail=detail)


def draft_detail(db: Session, draft: ApprovalDraft) -> DraftDetailOut:
    """결재자 이름을 붙인 상세 응답."""
    out = DraftDetailOut.model_validate(draft)
    user_ids = {a.user_id for s in out.stages for a in s.approvers}
    names = {}
    if user_ids:
        names = {u.id: u.name for u in db.query(User).filter(User.id.in_(user_ids)).all()}
    for stage in out.stages:
        for approver in stage.approvers:
            approver.user_name = names.get(approver.user_id)
    return out


@router.get("", response_model=List[DraftOut])
def list_drafts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(ApprovalDraft)
        .filter(ApprovalDraft.user_id == current_user.id)
        .order_by(ApprovalDraft.created_at.desc())
        .all()
    )


@router.post("", response_model=DraftDetailOut, status_code=201)
def create_draft(
    payload: DraftCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    title = (payload.title or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="제목을 입력해주세요")
    content = content_fields(payload.content)
    if payload.approval_route is not None:
        content = embed_route(content, payload.approval_route)
    draft = ApprovalDraft(
        user_id=current_user.id,
        title=title,
        content=content,
        status=DRAFT_STATUS_DRAFT,
    )
    db.add(draft)
    db.commit()
    db.refresh(draft)
    return draft_detail(db, draft)


@router.get("/{draft_id}", response_model=DraftDetailOut)
def get_draft(
    draft_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    draft = _get_draft(db, draft_id)
    if not current_user.is_admin and not approval_engine.is_participant(draft, current_user.id):
        raise HTTPException(status_code=403, detail="문서를 볼 권한이 없습니다")
    return draft_detail(db, draft)


@router.put("/{draft_id}", response_model=DraftDetailOut)
def update_draft(
    draft_id: UUID,
    payload: DraftUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """본문을 바꿔도 저장된 결재선은 유지된다. approval_route 를 주면 교체."""
    draft = _get_draft(db, draft_id)
    _require_author(draft, current_user, "작성자만 수정할 수 있습니다")
    if draft.status not in (DRAFT_STATUS_DRAFT, DRAFT_STATUS_REJECTED):
        raise HTTPException(status_code=400, detail="상신된 문서는 수정할 수 없습니다")

    if payload.title is not None:
        title = payload.title.strip()
        if not title:
            raise HTTPException(status_code=400, detail="제목을 입력해주세요")
        draft.title = title

    route = payload.approval_route or extract_route(draft.content)
    content = content_fields(payload.content if payload.content is not None else draft.content)
    if route is not None:
        content = embed_route(content, route)
    draft.content = content

    db.commit()
    db.refresh(draft)
    return draft_detail(db, draft)


@router.post("/{draft_id}/submit", response_model=DraftDetailOut)
def submit_draft(
    draft_id: UUID,
    payload: SubmitDraftRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """customRoute 가 없으면 문서에 저장된 결재선으로 상신한다."""
    draft = _get_draft(db, draft_id)
    _require_author(draft, current_user, "작성자만 상신할 수 있습니다")

    try:
        custom_route = payload.custom_route
        if not custom_route:
            route = validate_route(extract_route(draft.content))
            custom_route = to_submission_payload(route.steps)
        draft = approval_engine.submit_draft(
            db,
            draft,
            custom_route,
            current_user.id,
            payload.comments or settings.default_submit_comment,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return draft_detail(db, draft)


@router.post("/{draft_id}/approve", response_model=DraftDetailOut)
def approve_draft(
    draft_id: UUID,
    payload: ApprovalActionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    draft = _get_draft(db, draft_id)
    try:
        draft = approval_engine.process_decision(
            db, draft, current_user.id, approval_engine.DECISION_APPROVED, payload.comments
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return draft_detail(db, draft)


@router.post("/{draft_id}/reject", response_model=DraftDetailOut)
def reject_draft(
    draft_id: UUID,
    payload: ApprovalActionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    draft = _get_draft(db, draft_id)
    try:
        draft = approval_engine.process_decision(
            db, draft, current_user.id, approval_engine.DECISION_REJECTED, payload.comments
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return draft_detail(db, draft)


@router.post("/{draft_id}/comment", response_model=ActionOut, status_code=201)
def comment_draft(
    draft_id: UUID,
    payload: ApprovalActionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    draft = _get_draft(db, draft_id)
    if not approval_engine.is_participant(draft, current_user.id):
        raise HTTPException(status_code=403, detail="결재선에 포함된 사용자만 의견을 남길 수 있습니다")
    try:
        return approval_engine.add_comment(db, draft, current_user.id, payload.comments)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{draft_id}/cancel", response_model=DraftDetailOut)
def cancel_draft(
    draft_id: UUID,
    payload: ApprovalActionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    draft = _get_draft(db, draft_id)
    _require_author(draft, current_user, "작성자만 취소할 수 있습니다")
    try:
        draft = approval_engine.cancel_draft(db, draft, current_user.id, payload.comments)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return draft_detail(db, draft)

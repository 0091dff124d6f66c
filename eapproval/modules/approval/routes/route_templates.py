"""결재선 템플릿 라우트: /routes/user (개인), /admin/templates (관리자)."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from eapproval.modules.approval.dependencies import get_current_user, get_db, require_admin
from eapproval.modules.approval.models import ApprovalRouteTemplate
from eapproval.modules.approval.schemas.template import (
    AdminTemplate,
    AdminTemplateCreate,
    AdminTemplateUpdate,
    UserTemplate,
    UserTemplateCreate,
)
from eapproval.modules.approval.services import template_service
from eapproval.modules.directory.models import User

router = APIRouter(tags=["approval-route-templates"])


@router.get("/routes/user", response_model=List[UserTemplate])
def list_user_routes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [
        template_service.user_template_to_dict(t)
        for t in template_service.list_user_templates(db, current_user.id)
    ]


@router.post("/routes/user", response_model=UserTemplate, status_code=201)
def create_user_route(
    payload: UserTemplateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        template = template_service.create_user_template(db, current_user.id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return template_service.user_template_to_dict(template)


@router.delete("/routes/user/{template_id}", status_code=204)
def delete_user_route(
    template_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        template_service.delete_user_template(db, current_user.id, template_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/admin/templates", response_model=List[AdminTemplate])
def list_admin_templates(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [
        template_service.admin_template_to_dict(db, t)
        for t in template_service.list_admin_templates(db)
    ]


@router.post("/admin/templates", response_model=AdminTemplate, status_code=201)
def create_admin_template(
    payload: AdminTemplateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        template = template_service.create_admin_template(db, payload, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return template_service.admin_template_to_dict(db, template)


def _get_admin_template(db: Session, template_id: UUID) -> ApprovalRouteTemplate:
    template = db.query(ApprovalRouteTemplate).filter(ApprovalRouteTemplate.id == template_id).first()
    if not template:
        raise HTTPException(status_code=404, detail="템플릿을 찾을 수 없습니다")
    return template


@router.put("/admin/templates/{template_id}", response_model=AdminTemplate)
def update_admin_template(
    template_id: UUID,
    payload: AdminTemplateUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    template = _get_admin_template(db, template_id)
    try:
        template = template_service.update_admin_template(db, template, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return template_service.admin_template_to_dict(db, template)


@router.delete("/admin/templates/{template_id}", status_code=204)
def delete_admin_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """비활성화만 한다 (is_active = False)."""
    template = _get_admin_template(db, template_id)
    template.is_active = False
    template.is_default = False
    db.commit()

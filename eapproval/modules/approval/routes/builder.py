"""결재선 구성 도우미: 자동 생성, 템플릿 적용."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from eapproval.modules.approval.dependencies import get_current_user, get_db
from eapproval.modules.approval.models import ApprovalRouteTemplate, UserApprovalRoute
from eapproval.modules.approval.schemas.route import OrgMember, RouteStepsOut
from eapproval.modules.approval.schemas.template import (
    AdminTemplate,
    ApplyTemplateRequest,
    UserTemplate,
)
from eapproval.modules.approval.services import template_service
from eapproval.modules.approval.services.auto_route import generate_auto_approval_steps
from eapproval.modules.approval.services.providers import SqlDirectoryProvider
from eapproval.modules.approval.services.route_templates import template_to_steps
from eapproval.modules.directory.models import User

router = APIRouter(prefix="/routes", tags=["approval-route-builder"])


def _members(db: Session) -> List[OrgMember]:
    return [OrgMember.from_directory_entry(e) for e in SqlDirectoryProvider(db).get_users()]


@router.get("/auto", response_model=RouteStepsOut)
def auto_route(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = generate_auto_approval_steps(_members(db), str(current_user.id))
    return RouteStepsOut(steps=result.steps, warning=result.warning)


@router.post("/apply", response_model=RouteStepsOut)
def apply_template(
    payload: ApplyTemplateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if payload.kind == "user":
        row = (
            db.query(UserApprovalRoute)
            .filter(
                UserApprovalRoute.id == payload.template_id,
                UserApprovalRoute.user_id == current_user.id,
            )
            .first()
        )
        template = (
            UserTemplate.model_validate(template_service.user_template_to_dict(row)) if row else None
        )
    else:
        row = (
            db.query(ApprovalRouteTemplate)
            .filter(
                ApprovalRouteTemplate.id == payload.template_id,
                ApprovalRouteTemplate.is_active == True,  # noqa: E712
            )
            .first()
        )
        template = (
            AdminTemplate.model_validate(template_service.admin_template_to_dict(db, row))
            if row
            else None
        )
    if template is None:
        raise HTTPException(status_code=404, detail="템플릿을 찾을 수 없습니다")

    steps = template_to_steps(template, _members(db))
    warning = None if steps else "템플릿에서 사용할 수 있는 결재자가 없습니다."
    return RouteStepsOut(steps=steps, warning=warning)

"""결재선 템플릿 저장소 (개인 / 관리자)."""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from eapproval.modules.approval.models import ApprovalRouteTemplate, UserApprovalRoute
from eapproval.modules.approval.schemas.template import (
    AdminTemplateCreate,
    AdminTemplateUpdate,
    UserTemplateCreate,
)
from eapproval.modules.directory.api import user_to_directory_entry
from eapproval.modules.directory.models import User

logger = logging.getLogger(__name__)

TEMPLATE_NAME_REQUIRED = "템플릿 이름을 입력해주세요."


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError(TEMPLATE_NAME_REQUIRED)
    return name


def list_user_templates(db: Session, user_id: UUID) -> List[UserApprovalRoute]:
    return (
        db.query(UserApprovalRoute)
        .filter(UserApprovalRoute.user_id == user_id)
        .order_by(UserApprovalRoute.is_default.desc(), UserApprovalRoute.name)
        .all()
    )


def create_user_template(
    db: Session, user_id: UUID, payload: UserTemplateCreate
) -> UserApprovalRoute:
    name = _clean_name(payload.name)
    if payload.is_default:
        _clear_user_default(db, user_id)
    template = UserApprovalRoute(
        user_id=user_id,
        name=name,
        description=(payload.description or "").strip() or None,
        steps=[s.to_wire() for s in payload.steps],
        is_default=payload.is_default,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info(f"개인 결재선 템플릿 저장: {name} ({len(payload.steps)}단계)")
    return template


def delete_user_template(db: Session, user_id: UUID, template_id: UUID) -> None:
    template = (
        db.query(UserApprovalRoute)
        .filter(UserApprovalRoute.id == template_id, UserApprovalRoute.user_id == user_id)
        .first()
    )
    if not template:
        raise LookupError("템플릿을 찾을 수 없습니다")
    db.delete(template)
    db.commit()


def _clear_user_default(db: Session, user_id: UUID) -> None:
    db.query(UserApprovalRoute).filter(
        UserApprovalRoute.user_id == user_id, UserApprovalRoute.is_default == True  # noqa: E712
    ).update({UserApprovalRoute.is_default: False})


def _clear_admin_default(db: Session) -> None:
    db.query(ApprovalRouteTemplate).filter(
        ApprovalRouteTemplate.is_default == True  # noqa: E712
    ).update({ApprovalRouteTemplate.is_default: False})


def list_admin_templates(db: Session) -> List[ApprovalRouteTemplate]:
    return (
        db.query(ApprovalRouteTemplate)
        .filter(ApprovalRouteTemplate.is_active == True)  # noqa: E712
        .order_by(ApprovalRouteTemplate.name)
        .all()
    )


def create_admin_template(
    db: Session, payload: AdminTemplateCreate, created_by: UUID
) -> ApprovalRouteTemplate:
    name = _clean_name(payload.name)
    if payload.is_default:
        _clear_admin_default(db)
    template = ApprovalRouteTemplate(
        name=name,
        description=(payload.description or "").strip() or None,
        stages=[s.model_dump() for s in payload.stages],
        is_default=payload.is_default,
        is_active=True,
        created_by=created_by,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def update_admin_template(
    db: Session, template: ApprovalRouteTemplate, payload: AdminTemplateUpdate
) -> ApprovalRouteTemplate:
    if payload.name is not None:
        template.name = _clean_name(payload.name)
    if payload.description is not None:
        template.description = payload.description.strip() or None
    if payload.stages is not None:
        template.stages = [s.model_dump() for s in payload.stages]
    if payload.is_default is not None:
        if payload.is_default:
            _clear_admin_default(db)
        template.is_default = payload.is_default
    if payload.is_active is not None:
        template.is_active = payload.is_active
    db.commit()
    db.refresh(template)
    return template


def user_template_to_dict(template: UserApprovalRoute) -> Dict:
    return {
        "id": str(template.id),
        "name": template.name,
        "description": template.description,
        "is_default": template.is_default,
        "steps": list(template.steps or []),
    }


def admin_template_to_dict(db: Session, template: ApprovalRouteTemplate) -> Dict:
    """결재자마다 디렉터리 정보를 user 로 붙여 돌려준다."""
    stages = []
    for stage in template.stages or []:
        approvers = []
        for approver in stage.get("approvers", []):
            entry = dict(approver)
            user = _find_user(db, approver.get("user_id"))
            if user is not None:
                entry["user"] = user_to_directory_entry(user).model_dump()
            approvers.append(entry)
        stages.append({**stage, "approvers": approvers})
    return {
        "id": str(template.id),
        "name": template.name,
        "description": template.description,
        "is_default": template.is_default,
        "stages": stages,
    }


def _find_user(db: Session, user_id: Optional[str]) -> Optional[User]:
    if not user_id:
        return None
    try:
        uid = UUID(str(user_id))
    except ValueError:
        return None
    return db.query(User).filter(User.id == uid).first()

"""
결재선 구성기가 쓰는 외부 협력자 인터페이스와 DB 기반 구현.

같은 인터페이스의 HTTP 구현은 portal_client.PortalClient 에 있다.
"""
from typing import Any, Dict, List, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from eapproval.modules.approval.schemas.template import UserTemplateCreate
from eapproval.modules.approval.services import template_service
from eapproval.modules.directory.api import user_to_directory_entry
from eapproval.modules.directory.models import User


class DirectoryProvider(Protocol):
    def get_users(self) -> List[Dict[str, Any]]:
        """[{id, name, title, role, employee_profile: {department}}]"""
        ...


class RouteTemplateStore(Protocol):
    def get_user_approval_routes(self) -> List[Dict[str, Any]]:
        ...

    def get_admin_approval_templates(self) -> List[Dict[str, Any]]:
        ...

    def save_user_approval_route(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """data = {name, description, steps, isDefault}"""
        ...


class SubmissionGateway(Protocol):
    def submit_draft(self, draft_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """payload = {customRoute: [...], comments}"""
        ...


class SqlDirectoryProvider:
    def __init__(self, db: Session):
        self.db = db

    def get_users(self) -> List[Dict[str, Any]]:
        users = (
            self.db.query(User)
            .filter(User.is_active == True)  # noqa: E712
            .order_by(User.department, User.name)
            .all()
        )
        return [user_to_directory_entry(u).model_dump() for u in users]


class SqlTemplateStore:
    """현재 사용자 기준의 템플릿 저장소."""

    def __init__(self, db: Session, user_id: UUID):
        self.db = db
        self.user_id = user_id

    def get_user_approval_routes(self) -> List[Dict[str, Any]]:
        return [
            template_service.user_template_to_dict(t)
            for t in template_service.list_user_templates(self.db, self.user_id)
        ]

    def get_admin_approval_templates(self) -> List[Dict[str, Any]]:
        return [
            template_service.admin_template_to_dict(self.db, t)
            for t in template_service.list_admin_templates(self.db)
        ]

    def save_user_approval_route(self, data: Dict[str, Any]) -> Dict[str, Any]:
        template = template_service.create_user_template(
            self.db, self.user_id, UserTemplateCreate.model_validate(data)
        )
        return template_service.user_template_to_dict(template)

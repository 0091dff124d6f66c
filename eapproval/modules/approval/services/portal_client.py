"""
포털 전자결재 API 클라이언트.

DirectoryProvider / RouteTemplateStore / SubmissionGateway 의 HTTP 구현.
결재선 구성기를 다른 서비스(또는 CLI)에서 쓸 때 사용한다.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from eapproval.core.config import settings

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """포털 API 호출 실패."""


class PortalClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.portal_api_url).rstrip("/")
        self.token = token if token is not None else settings.portal_token
        self.timeout = timeout or settings.portal_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.Client:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        return httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            logger.warning(f"포털 API 호출 실패 {method} {path}: {e}")
            raise PortalError(str(e)) from e

    # DirectoryProvider

    def get_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/directory/users")

    # RouteTemplateStore

    def get_user_approval_routes(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/approval/routes/user")

    def get_admin_approval_templates(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/approval/admin/templates")

    def save_user_approval_route(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/approval/routes/user", json=data)

    # SubmissionGateway

    def submit_draft(self, draft_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"/approval/drafts/{draft_id}/submit", json=payload)

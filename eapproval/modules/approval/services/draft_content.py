"""기안 본문(content) 안의 결재선 스냅샷 읽기/쓰기. 다른 본문 필드는 건드리지 않는다."""
from typing import Any, Dict, Optional

from eapproval.modules.approval.schemas.route import ApprovalRoute

APPROVAL_ROUTE_KEY = "__approvalRoute"


def embed_route(content: Optional[Dict[str, Any]], route: ApprovalRoute) -> Dict[str, Any]:
    result = dict(content or {})
    result[APPROVAL_ROUTE_KEY] = route.to_wire()
    return result


def extract_route(content: Optional[Dict[str, Any]]) -> Optional[ApprovalRoute]:
    raw = (content or {}).get(APPROVAL_ROUTE_KEY)
    if not raw:
        return None
    return ApprovalRoute.model_validate(raw)


def content_fields(content: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """결재선을 뺀 본문 필드."""
    return {k: v for k, v in (content or {}).items() if k != APPROVAL_ROUTE_KEY}

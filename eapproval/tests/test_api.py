"""
API 통합 테스트
"""
from eapproval.modules.approval.models import ApprovalRouteTemplate
from eapproval.tests.conftest import auth_headers

PREFIX = "/api/v1"


def _route_payload(*approver_ids):
    return {
        "steps": [
            {"id": f"step_{n}", "order": n, "approverId": str(uid), "type": "APPROVAL", "isRequired": True}
            for n, uid in enumerate(approver_ids, start=1)
        ]
    }


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_endpoints_require_auth(client):
    assert client.get(f"{PREFIX}/directory/users").status_code == 401
    assert client.get(f"{PREFIX}/approval/drafts").status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get(f"{PREFIX}/approval/pending", headers=bad).status_code == 401


def test_directory_users(client, users):
    response = client.get(f"{PREFIX}/directory/users", headers=auth_headers(users["requester"]))

    assert response.status_code == 200
    data = response.json()
    assert len(data) == len(users)
    hr = next(u for u in data if u["name"] == "박인사")
    assert hr["role"] == "HR_MANAGER"
    assert hr["employee_profile"] == {"department": "HR팀"}


def test_user_route_templates(client, users):
    headers = auth_headers(users["requester"])
    body = {"name": "기본 결재선", "isDefault": True, **_route_payload(users["admin"].id)}

    created = client.post(f"{PREFIX}/approval/routes/user", json=body, headers=headers)
    assert created.status_code == 201
    template = created.json()
    assert template["is_default"] is True
    assert template["steps"][0]["approverId"] == str(users["admin"].id)

    # 새 기본 템플릿을 만들면 이전 기본은 해제된다
    second = client.post(
        f"{PREFIX}/approval/routes/user",
        json={**body, "name": "두 번째"},
        headers=headers,
    ).json()
    listed = client.get(f"{PREFIX}/approval/routes/user", headers=headers).json()
    defaults = [t["id"] for t in listed if t["is_default"]]
    assert defaults == [second["id"]]

    # 다른 사용자에게는 보이지 않는다
    other = client.get(f"{PREFIX}/approval/routes/user", headers=auth_headers(users["admin"])).json()
    assert other == []

    deleted = client.delete(f"{PREFIX}/approval/routes/user/{template['id']}", headers=headers)
    assert deleted.status_code == 204
    missing = client.delete(f"{PREFIX}/approval/routes/user/{template['id']}", headers=headers)
    assert missing.status_code == 404


def test_user_route_template_requires_name(client, users):
    response = client.post(
        f"{PREFIX}/approval/routes/user",
        json={"name": "  ", "steps": []},
        headers=auth_headers(users["requester"]),
    )
    assert response.status_code == 400


def test_admin_templates_are_admin_only(client, users):
    body = {
        "name": "전사 결재선",
        "is_default": True,
        "stages": [
            {"type": "CONSENT", "order_index": 0, "approvers": [{"user_id": str(users["hr_manager"].id)}]},
            {"type": "APPROVAL", "order_index": 1, "approvers": [{"user_id": str(users["admin"].id)}]},
        ],
    }

    forbidden = client.post(
        f"{PREFIX}/approval/admin/templates", json=body, headers=auth_headers(users["hr_manager"])
    )
    assert forbidden.status_code == 403

    created = client.post(f"{PREFIX}/approval/admin/templates", json=body, headers=auth_headers(users["admin"]))
    assert created.status_code == 201
    template_id = created.json()["id"]

    # 누구나 조회할 수 있고, 결재자 정보가 함께 온다
    listed = client.get(f"{PREFIX}/approval/admin/templates", headers=auth_headers(users["requester"])).json()
    assert [t["id"] for t in listed] == [template_id]
    assert listed[0]["stages"][0]["approvers"][0]["user"]["name"] == "박인사"

    updated = client.put(
        f"{PREFIX}/approval/admin/templates/{template_id}",
        json={"name": "전사 결재선 v2"},
        headers=auth_headers(users["admin"]),
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "전사 결재선 v2"

    deleted = client.delete(f"{PREFIX}/approval/admin/templates/{template_id}", headers=auth_headers(users["admin"]))
    assert deleted.status_code == 204
    assert client.get(f"{PREFIX}/approval/admin/templates", headers=auth_headers(users["admin"])).json() == []


def test_auto_route(client, users):
    response = client.get(f"{PREFIX}/approval/routes/auto", headers=auth_headers(users["requester"]))

    assert response.status_code == 200
    data = response.json()
    assert data["warning"] is None
    assert [(s["type"], s["approverName"]) for s in data["steps"]] == [
        ("COOPERATION", "이개발"),
        ("APPROVAL", "박인사"),
        ("APPROVAL", "강대표"),
        ("REFERENCE", "최인사"),
    ]


def test_apply_admin_template(client, db, users):
    template = ApprovalRouteTemplate(
        name="빈 템플릿", stages=[], is_default=False, is_active=True, created_by=users["admin"].id
    )
    db.add(template)
    db.commit()

    response = client.post(
        f"{PREFIX}/approval/routes/apply",
        json={"kind": "admin", "template_id": str(template.id)},
        headers=auth_headers(users["requester"]),
    )

    assert response.status_code == 200
    # 빈 템플릿은 기본 결재선(HR 매니저 협조 → 최고 관리자 결재)으로 대체된다
    assert [s["type"] for s in response.json()["steps"]] == ["COOPERATION", "APPROVAL"]


def test_apply_unknown_template(client, users):
    response = client.post(
        f"{PREFIX}/approval/routes/apply",
        json={"kind": "user", "template_id": "00000000-0000-0000-0000-000000000000"},
        headers=auth_headers(users["requester"]),
    )
    assert response.status_code == 404


def test_draft_lifecycle(client, users):
    author = auth_headers(users["requester"])
    route = _route_payload(users["hr_manager"].id, users["admin"].id)

    created = client.post(
        f"{PREFIX}/approval/drafts",
        json={"title": "연차 신청", "content": {"days": 2}, "approval_route": route},
        headers=author,
    )
    assert created.status_code == 201
    draft = created.json()
    assert draft["status"] == "DRAFT"
    assert draft["content"]["days"] == 2
    assert len(draft["content"]["__approvalRoute"]["steps"]) == 2

    # 본문만 바꿔도 결재선은 유지된다
    updated = client.put(
        f"{PREFIX}/approval/drafts/{draft['id']}",
        json={"content": {"days": 3}},
        headers=author,
    ).json()
    assert updated["content"]["days"] == 3
    assert "__approvalRoute" in updated["content"]

    submitted = client.post(f"{PREFIX}/approval/drafts/{draft['id']}/submit", json={}, headers=author)
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["status"] == "IN_PROGRESS"
    assert [s["status"] for s in body["stages"]] == ["PENDING", "WAITING"]
    assert body["stages"][0]["approvers"][0]["user_name"] == "박인사"
    assert body["actions"][0]["comments"] == "결재 요청드립니다."

    pending = client.get(f"{PREFIX}/approval/pending", headers=auth_headers(users["hr_manager"])).json()
    assert [p["draft_id"] for p in pending] == [draft["id"]]
    assert pending[0]["author_name"] == "김기안"

    wrong_turn = client.post(
        f"{PREFIX}/approval/drafts/{draft['id']}/approve", json={}, headers=auth_headers(users["admin"])
    )
    assert wrong_turn.status_code == 400

    for key in ("hr_manager", "admin"):
        response = client.post(
            f"{PREFIX}/approval/drafts/{draft['id']}/approve",
            json={"comments": "승인"},
            headers=auth_headers(users[key]),
        )
        assert response.status_code == 200

    assert response.json()["status"] == "APPROVED"
    assert client.post(f"{PREFIX}/approval/drafts/{draft['id']}/cancel", json={}, headers=author).status_code == 400


def test_submit_without_route_is_rejected(client, users):
    author = auth_headers(users["requester"])
    draft = client.post(f"{PREFIX}/approval/drafts", json={"title": "경비 청구"}, headers=author).json()

    response = client.post(f"{PREFIX}/approval/drafts/{draft['id']}/submit", json={}, headers=author)

    assert response.status_code == 400
    assert response.json()["detail"] == "결재선을 설정해주세요"


def test_submit_with_custom_route(client, users):
    author = auth_headers(users["requester"])
    draft = client.post(f"{PREFIX}/approval/drafts", json={"title": "경비 청구"}, headers=author).json()
    custom_route = [
        {"type": "APPROVAL", "mode": "SEQUENTIAL", "rule": "ALL", "name": "결재",
         "approvers": [{"userId": str(users["admin"].id), "isRequired": True}]},
        {"type": "REFERENCE", "mode": "PARALLEL", "rule": "ALL", "name": "참조",
         "approvers": [{"userId": str(users["hr_staff"].id), "isRequired": False}]},
    ]

    response = client.post(
        f"{PREFIX}/approval/drafts/{draft['id']}/submit",
        json={"customRoute": custom_route, "comments": "확인 바랍니다"},
        headers=author,
    )

    assert response.status_code == 200
    assert [s["status"] for s in response.json()["stages"]] == ["PENDING", "NOTIFIED"]


def test_only_author_submits_and_outsiders_cannot_read(client, users):
    draft = client.post(
        f"{PREFIX}/approval/drafts",
        json={"title": "보고서", "approval_route": _route_payload(users["admin"].id)},
        headers=auth_headers(users["requester"]),
    ).json()

    outsider = auth_headers(users["outsider"])
    assert client.post(f"{PREFIX}/approval/drafts/{draft['id']}/submit", json={}, headers=outsider).status_code == 403
    assert client.get(f"{PREFIX}/approval/drafts/{draft['id']}", headers=outsider).status_code == 403
    assert client.post(
        f"{PREFIX}/approval/drafts/{draft['id']}/comment", json={"comments": "?"}, headers=outsider
    ).status_code == 403
    assert client.get(f"{PREFIX}/approval/drafts/00000000-0000-0000-0000-000000000000", headers=outsider).status_code == 404


def test_reject_and_comment(client, users):
    author = auth_headers(users["requester"])
    draft = client.post(
        f"{PREFIX}/approval/drafts",
        json={"title": "출장 신청", "approval_route": _route_payload(users["admin"].id)},
        headers=author,
    ).json()
    client.post(f"{PREFIX}/approval/drafts/{draft['id']}/submit", json={}, headers=author)

    comment = client.post(
        f"{PREFIX}/approval/drafts/{draft['id']}/comment",
        json={"comments": "일정 확인 필요"},
        headers=auth_headers(users["admin"]),
    )
    assert comment.status_code == 201
    assert comment.json()["action"] == "COMMENT"

    rejected = client.post(
        f"{PREFIX}/approval/drafts/{draft['id']}/reject",
        json={"comments": "일정 조정 후 재상신"},
        headers=auth_headers(users["admin"]),
    )
    assert rejected.json()["status"] == "REJECTED"

    listed = client.get(f"{PREFIX}/approval/drafts", headers=author).json()
    assert [(d["id"], d["status"]) for d in listed] == [(draft["id"], "REJECTED")]

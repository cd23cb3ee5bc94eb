from datetime import timedelta

import httpx

from timetrack.core.security import create_access_token


def _create(client, headers, **overrides):
    payload = {"wbs_code": "25002-01.1", "entry_date": "2024-01-15", "hours": 4}
    payload.update(overrides)
    return client.post("/api/v1/time-entries", json=payload, headers=headers)


def test_requests_without_token_are_unauthorized(client):
    assert client.get("/api/v1/time-entries").status_code == 401


def test_expired_token_is_unauthorized(client):
    token = create_access_token("dev-john", expires_delta=timedelta(minutes=-5))
    response = client.get("/api/v1/employees/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_first_sign_in_provisions_an_employee(client, headers_for):
    headers = headers_for("idp-new-user", email="new.hire@dmfengineering.com", name="New Hire")

    response = client.get("/api/v1/employees/me", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "employee"
    assert body["email"] == "new.hire@dmfengineering.com"
    # idempotent
    assert client.get("/api/v1/employees/me", headers=headers).json()["id"] == body["id"]


def test_unknown_identity_without_email_is_forbidden(client, headers_for):
    assert client.get("/api/v1/employees/me", headers=headers_for("stranger")).status_code == 403


def test_employee_catalog_hides_financials(client, john_headers, admin_headers):
    employee_items = client.get("/api/v1/catalog/items", headers=john_headers).json()
    admin_items = client.get("/api/v1/catalog/items", headers=admin_headers).json()

    assert all(float(i["budget_amount"]) == 0 for i in employee_items)
    assert all(float(i["dmf_budget_amount"]) == 0 for i in employee_items)
    assert any(float(i["budget_amount"]) > 0 for i in admin_items)

    single = client.get("/api/v1/catalog/items/25002-01.1", headers=john_headers).json()
    assert float(single["budget_amount"]) == 0


def test_catalog_navigation(client, john_headers):
    projects = client.get("/api/v1/catalog/projects", headers=john_headers).json()
    tasks = client.get("/api/v1/catalog/projects/25002/tasks", headers=john_headers).json()
    subtasks = client.get(
        "/api/v1/catalog/projects/25002/tasks/2/subtasks", headers=john_headers
    ).json()

    assert [p["project_number"] for p in projects] == [25002]
    assert [t["task_number"] for t in tasks] == [1, 2, 3, 4]
    assert [s["wbs_code"] for s in subtasks] == ["25002-02.1", "25002-02.2"]


def test_resolve_endpoint(client, john_headers):
    found = client.get(
        "/api/v1/catalog/resolve",
        params={"project_number": "25002", "task_number": "2", "subtask_number": "2.2"},
        headers=john_headers,
    )
    bucket = client.get(
        "/api/v1/catalog/resolve",
        params={"project_number": "25002", "task_number": "3"},
        headers=john_headers,
    )
    missing = client.get(
        "/api/v1/catalog/resolve",
        params={"project_number": "25002", "task_number": "1"},
        headers=john_headers,
    )

    assert found.json() == {"wbs_code": "25002-02.2"}
    assert bucket.json() == {"wbs_code": "25002-03"}
    assert missing.status_code == 404


def test_entry_lifecycle_over_http(client, john_headers, admin_headers):
    created = _create(client, john_headers)
    assert created.status_code == 201
    entry_id = created.json()["id"]
    assert created.json()["status"] == "draft"

    submitted = client.post(
        "/api/v1/time-entries/submit-day", json={"entry_date": "2024-01-15"}, headers=john_headers
    )
    assert submitted.json()["submitted_count"] == 1

    edit = client.patch(f"/api/v1/time-entries/{entry_id}", json={"hours": 5}, headers=john_headers)
    assert edit.status_code == 409

    pending = client.get("/api/v1/time-entries/pending", headers=admin_headers).json()
    assert [p["id"] for p in pending] == [entry_id]
    assert pending[0]["employee_name"] == "John Smith"

    rejected = client.post(
        f"/api/v1/time-entries/{entry_id}/review",
        json={"status": "rejected", "review_notes": "wrong task"},
        headers=admin_headers,
    )
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["review_notes"] == "wrong task"

    edited = client.patch(f"/api/v1/time-entries/{entry_id}", json={"hours": 5}, headers=john_headers)
    assert edited.status_code == 200
    assert edited.json()["status"] == "draft"
    assert edited.json()["review_notes"] is None

    unread = client.get("/api/v1/notifications/unread-count", headers=john_headers).json()
    assert unread["unread"] == 2

    assert client.delete(f"/api/v1/time-entries/{entry_id}", headers=john_headers).status_code == 204
    assert client.get(f"/api/v1/time-entries/{entry_id}", headers=john_headers).status_code == 404


def test_permission_mapping(client, john_headers, sarah_headers, admin_headers):
    entry_id = _create(client, john_headers).json()["id"]

    assert client.get(f"/api/v1/time-entries/{entry_id}", headers=sarah_headers).status_code == 403
    assert client.get(f"/api/v1/time-entries/{entry_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/v1/time-entries/{entry_id}", headers=sarah_headers).status_code == 403
    assert client.get("/api/v1/time-entries/pending", headers=john_headers).status_code == 403
    assert client.get("/api/v1/budget/report", headers=john_headers).status_code == 403
    assert client.get("/api/v1/employees", headers=john_headers).status_code == 403
    # approving a draft is an illegal transition
    review = client.post(
        f"/api/v1/time-entries/{entry_id}/review",
        json={"status": "approved"},
        headers=admin_headers,
    )
    assert review.status_code == 409


def test_invalid_payloads(client, john_headers):
    assert _create(client, john_headers, hours=0).status_code == 422
    assert _create(client, john_headers, entry_date="2024-01-15T23:00:00-05:00").status_code == 422
    assert _create(client, john_headers, wbs_code="25002-99.9").status_code == 400
    entry_id = _create(client, john_headers).json()["id"]
    # the WBS code is fixed once created
    moved = client.patch(
        f"/api/v1/time-entries/{entry_id}", json={"wbs_code": "25002-03"}, headers=john_headers
    )
    assert moved.status_code == 422


def test_entry_date_is_kept_as_calendar_day(client, john_headers):
    created = _create(client, john_headers, entry_date="2024-03-10")

    assert created.json()["entry_date"] == "2024-03-10"


def test_batch_and_week_summary(client, john_headers):
    batch = client.post(
        "/api/v1/time-entries/batch",
        json={
            "entries": [
                {"wbs_code": "25002-01.1", "entry_date": "2024-01-15", "hours": 4, "description": "SD"},
                {"wbs_code": "25002-03", "entry_date": "2024-01-16", "hours": 2.5},
            ]
        },
        headers=john_headers,
    )
    assert batch.status_code == 201

    week = client.get(
        "/api/v1/time-entries/week", params={"week_start": "2024-01-14"}, headers=john_headers
    ).json()
    assert week["week_end"] == "2024-01-20"
    assert len(week["days"]) == 7
    assert float(week["total_hours"]) == 6.5

    submitted = client.post(
        "/api/v1/time-entries/submit-week",
        json={"week_start": "2024-01-14", "week_end": "2024-01-20"},
        headers=john_headers,
    ).json()
    assert submitted["submitted_count"] == 2

    inverted = client.post(
        "/api/v1/time-entries/submit-week",
        json={"week_start": "2024-01-20", "week_end": "2024-01-14"},
        headers=john_headers,
    )
    assert inverted.status_code == 422


def test_recent_entries_endpoint(client, john_headers):
    _create(client, john_headers)
    _create(client, john_headers, wbs_code="25002-02.1")
    _create(client, john_headers)

    recents = client.get("/api/v1/suggestions/recent", headers=john_headers).json()

    assert [r["wbs_code"] for r in recents] == ["25002-01.1", "25002-02.1"]


def test_budget_report_endpoints(client, admin_headers):
    report = client.get("/api/v1/budget/report", headers=admin_headers)
    pdf = client.get("/api/v1/budget/report.pdf", headers=admin_headers)

    assert report.status_code == 200
    assert report.json()["overall_status"] == "under-budget"
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_admin_manages_employees(client, admin_headers):
    created = client.post(
        "/api/v1/employees",
        json={
            "user_id": "idp-maria",
            "name": "Maria Lopez",
            "email": "maria@dmfengineering.com",
            "default_billing_rate": "95",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    employee_id = created.json()["id"]

    duplicate = client.post(
        "/api/v1/employees",
        json={"user_id": "idp-other", "name": "Maria L", "email": "maria@dmfengineering.com"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400

    updated = client.patch(
        f"/api/v1/employees/{employee_id}",
        json={"role": "admin", "active": False},
        headers=admin_headers,
    )
    assert updated.json()["role"] == "admin"
    assert updated.json()["active"] is False

    active = client.get("/api/v1/employees", headers=admin_headers).json()
    everyone = client.get(
        "/api/v1/employees", params={"include_inactive": True}, headers=admin_headers
    ).json()
    assert employee_id not in [e["id"] for e in active]
    assert employee_id in [e["id"] for e in everyone]


def test_inactive_employee_is_forbidden(client, admin_headers, headers_for):
    gone_id = client.post(
        "/api/v1/employees",
        json={"user_id": "idp-gone", "name": "Gone", "email": "gone@dmfengineering.com"},
        headers=admin_headers,
    ).json()["id"]
    client.patch(f"/api/v1/employees/{gone_id}", json={"active": False}, headers=admin_headers)

    assert client.get("/api/v1/employees/me", headers=headers_for("idp-gone")).status_code == 403


def test_suggest_endpoint_reports_gateway_failure(client, john_headers, monkeypatch):
    from timetrack.services import suggestion_service

    real_client = suggestion_service.AISuggestionClient
    monkeypatch.setattr(
        suggestion_service,
        "AISuggestionClient",
        lambda: real_client(
            api_key="k",
            transport=httpx.MockTransport(lambda request: httpx.Response(429)),
        ),
    )

    response = client.post(
        "/api/v1/suggestions", json={"transcript": "drafted SD set"}, headers=john_headers
    )

    assert response.status_code == 502
    assert "Rate limit" in response.json()["detail"]


def test_review_email_is_delivered_after_the_response_transaction(
    client, conn, john_headers, admin_headers, monkeypatch
):
    from timetrack.services import notification_service

    sent = []
    real_email_client = notification_service.EmailClient

    def handler(request):
        # the review is already committed when the provider is called
        row = conn.execute("SELECT status FROM time_entries WHERE id = ?", (entry_id,)).fetchone()
        sent.append((request.url.path, row["status"], conn.in_transaction))
        return httpx.Response(200, json={"id": "email-1"})

    monkeypatch.setattr(
        notification_service,
        "EmailClient",
        lambda: real_email_client(
            api_key="re_test",
            api_url="https://mail.test/emails",
            transport=httpx.MockTransport(handler),
        ),
    )
    entry_id = _create(client, john_headers).json()["id"]
    client.post(
        "/api/v1/time-entries/submit-day", json={"entry_date": "2024-01-15"}, headers=john_headers
    )
    assert sent == [("/emails", "submitted", False)]

    reviewed = client.post(
        f"/api/v1/time-entries/{entry_id}/review",
        json={"status": "approved"},
        headers=admin_headers,
    )

    assert reviewed.status_code == 200
    assert sent[-1] == ("/emails", "approved", False)


def test_hours_beyond_two_decimals_are_rejected(client, john_headers):
    assert _create(client, john_headers, hours="7.3333333333333333333").status_code == 422

    created = _create(client, john_headers, hours="7.25")
    assert created.status_code == 201
    assert float(created.json()["hours"]) == 7.25


def test_explicit_null_clears_description(client, john_headers):
    entry_id = _create(client, john_headers, description="Layouts").json()["id"]

    kept = client.patch(f"/api/v1/time-entries/{entry_id}", json={"hours": 3}, headers=john_headers)
    assert kept.json()["description"] == "Layouts"

    cleared = client.patch(
        f"/api/v1/time-entries/{entry_id}", json={"description": None}, headers=john_headers
    )
    assert cleared.status_code == 200
    assert cleared.json()["description"] is None
    assert float(cleared.json()["hours"]) == 3

    no_hours = client.patch(
        f"/api/v1/time-entries/{entry_id}", json={"hours": None}, headers=john_headers
    )
    assert no_hours.status_code == 400


def test_audit_log_is_admin_only(client, john_headers, admin_headers):
    entry_id = _create(client, john_headers).json()["id"]

    assert client.get("/api/v1/audit-log", headers=john_headers).status_code == 403

    rows = client.get(
        "/api/v1/audit-log",
        params={"table_name": "time_entries", "record_id": str(entry_id)},
        headers=admin_headers,
    )
    assert rows.status_code == 200
    assert [r["action"] for r in rows.json()] == ["create"]
    assert rows.json()[0]["user_id"] == "dev-john"
    assert rows.json()[0]["new_values"]["status"] == "draft"


def test_employee_role_change_is_audited(client, admin_headers):
    employee_id = client.post(
        "/api/v1/employees",
        json={"user_id": "idp-lee", "name": "Lee Park", "email": "lee@dmfengineering.com"},
        headers=admin_headers,
    ).json()["id"]
    client.patch(f"/api/v1/employees/{employee_id}", json={"role": "admin"}, headers=admin_headers)

    rows = client.get(
        "/api/v1/audit-log",
        params={"table_name": "employees", "record_id": str(employee_id)},
        headers=admin_headers,
    ).json()

    assert [r["action"] for r in rows] == ["role_change", "create"]
    assert rows[0]["old_values"]["role"] == "employee"
    assert rows[0]["new_values"]["role"] == "admin"
    assert rows[0]["user_id"] == "dev-admin"

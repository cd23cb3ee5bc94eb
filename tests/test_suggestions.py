import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from timetrack.core.exceptions import ExternalServiceError
from timetrack.schemas.suggestion import SuggestionRequest
from timetrack.services.ai_suggestion_client import TOOL_NAME, AISuggestionClient
from timetrack.services.recent_entry_service import RecentEntryService
from timetrack.services.suggestion_service import SuggestionService, catalog_hierarchy

GATEWAY = "https://gateway.test/v1/chat/completions"


def _tool_reply(suggestions):
    return {
        "choices": [
            {
                "message": {
                    "tool_calls": [
                        {
                            "function": {
                                "name": TOOL_NAME,
                                "arguments": json.dumps({"suggestions": suggestions}),
                            }
                        }
                    ]
                }
            }
        ]
    }


def _client(handler):
    return AISuggestionClient(
        api_url=GATEWAY,
        api_key="test-key",
        model="test-model",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


# ---------------------------------------------------------------------------
# Recents
# ---------------------------------------------------------------------------

def test_recents_dedupe_to_latest_instance(conn, john, make_entry):
    codes = ["25002-01.1", "25002-02.1", "25002-03"]
    for i in range(20):
        make_entry(john, wbs_code=codes[i % 3], hours=str(1 + i % 5), description=f"entry {i}")

    recents = RecentEntryService(conn).recent_entries(john)

    # newest entries: 19 -> 02.1, 18 -> 01.1, 17 -> 03
    assert [r.wbs_code for r in recents] == ["25002-02.1", "25002-01.1", "25002-03"]
    assert [r.last_description for r in recents] == ["entry 19", "entry 18", "entry 17"]
    assert recents[0].project_name.startswith("Arverne East")
    assert recents[1].subtask_description == "Schematic Design"
    assert recents[2].subtask_description is None


def test_recents_stop_at_limit(conn, john, sarah, make_entry):
    for code in ["25002-01.1", "25002-01.2", "25002-01.3", "25002-01.4", "25002-02.1"]:
        make_entry(john, wbs_code=code)
    make_entry(sarah, wbs_code="25002-04.2")

    recents = RecentEntryService(conn).recent_entries(john, limit=3)

    assert [r.wbs_code for r in recents] == ["25002-02.1", "25002-01.4", "25002-01.3"]


def test_recents_stop_reading_once_limit_reached(conn, john, make_entry, monkeypatch):
    for code in ["25002-01.1", "25002-01.2", "25002-01.3", "25002-01.4", "25002-02.1"]:
        make_entry(john, wbs_code=code)
    service = RecentEntryService(conn)
    original = service._entries.iter_recent_by_employee
    pulled = []

    def counting(employee_id):
        for entry in original(employee_id):
            pulled.append(entry.id)
            yield entry

    monkeypatch.setattr(service._entries, "iter_recent_by_employee", counting)

    service.recent_entries(john, limit=2)

    assert len(pulled) == 2


def test_recents_empty_history(conn, sarah):
    assert RecentEntryService(conn).recent_entries(sarah) == []


# ---------------------------------------------------------------------------
# AI suggestions
# ---------------------------------------------------------------------------

def test_catalog_hierarchy_has_no_amounts(conn, admin):
    from timetrack.repositories.budget_item_repository import BudgetItemRepository

    hierarchy = catalog_hierarchy(BudgetItemRepository(conn).list_for_admin())
    serialized = json.dumps(hierarchy)

    assert "budget_amount" not in serialized
    tasks = hierarchy[0]["tasks"]
    assert [t["task_number"] for t in tasks] == [1, 2, 3, 4]
    assert tasks[2]["wbs_code"] == "25002-03"
    assert tasks[0]["subtasks"][0]["wbs_code"] == "25002-01.1"


def test_suggestions_are_filtered_against_catalog(conn, john):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(
            200,
            json=_tool_reply(
                [
                    {"wbs_code": "25002-01.1", "hours": 4, "description": "SD set", "entry_date": "2024-01-15"},
                    {"wbs_code": "25002-99.9", "hours": 2, "description": "bogus", "entry_date": "2024-01-15"},
                    {"wbs_code": "25002-01.1 ", "hours": 2, "description": "padded", "entry_date": "2024-01-15"},
                    {"wbs_code": "25002-02.1", "hours": 0, "description": "zero", "entry_date": "2024-01-15"},
                    {"wbs_code": "25002-02.1", "hours": "lots", "description": "text", "entry_date": "2024-01-15"},
                    {"wbs_code": "25002-02.1", "hours": 3, "description": "bad date", "entry_date": "01/15/2024"},
                    {"wbs_code": "25002-03", "hours": 1.5, "description": "RFIs", "entry_date": "2024-01-16"},
                ]
            ),
        )

    service = SuggestionService(conn, client=_client(handler))
    response = service.suggest(
        john, SuggestionRequest(transcript="Worked on SD and RFIs", local_date="2024-01-16")
    )

    assert [s.wbs_code for s in response.suggestions] == ["25002-01.1", "25002-03"]
    assert response.dropped_count == 5
    rfi = response.suggestions[1]
    assert rfi.hours == Decimal("1.5")
    assert rfi.entry_date == date(2024, 1, 16)
    assert rfi.task_description == "Construction Administration"

    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["tool_choice"]["function"]["name"] == TOOL_NAME
    assert "2024-01-16" in seen["body"]["messages"][0]["content"]
    assert "budget_amount" not in seen["body"]["messages"][0]["content"]


@pytest.mark.parametrize("status_code", [429, 402, 500])
def test_gateway_errors_surface_as_external_service_error(conn, john, status_code):
    service = SuggestionService(
        conn, client=_client(lambda request: httpx.Response(status_code, json={"error": "x"}))
    )

    with pytest.raises(ExternalServiceError) as exc:
        service.suggest(john, SuggestionRequest(transcript="anything"))
    assert exc.value.status_code == 502


def test_reply_without_tool_call_is_an_error(conn, john):
    service = SuggestionService(
        conn,
        client=_client(lambda request: httpx.Response(200, json={"choices": [{"message": {}}]})),
    )

    with pytest.raises(ExternalServiceError):
        service.suggest(john, SuggestionRequest(transcript="anything"))


def test_transport_failure_is_an_error(conn, john):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    service = SuggestionService(conn, client=_client(handler))

    with pytest.raises(ExternalServiceError):
        service.suggest(john, SuggestionRequest(transcript="anything"))


def test_unconfigured_client_is_an_error(conn, john):
    client = AISuggestionClient(api_key="", transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    with pytest.raises(ExternalServiceError):
        SuggestionService(conn, client=client).suggest(john, SuggestionRequest(transcript="x"))


def test_suggestions_are_not_persisted(conn, john, entries):
    reply = _tool_reply(
        [{"wbs_code": "25002-01.1", "hours": 4, "description": "SD", "entry_date": "2024-01-15"}]
    )
    service = SuggestionService(conn, client=_client(lambda request: httpx.Response(200, json=reply)))

    service.suggest(john, SuggestionRequest(transcript="SD work"))

    assert entries.list_my_entries(john) == []


def test_suggested_hours_are_rounded_to_hundredths(conn, john):
    def handler(request):
        return httpx.Response(
            200,
            json=_tool_reply(
                [
                    {"wbs_code": "25002-01.1", "hours": 2.3333333, "description": "SD", "entry_date": "2024-01-15"},
                    {"wbs_code": "25002-01.2", "hours": 0.001, "description": "blip", "entry_date": "2024-01-15"},
                ]
            ),
        )

    service = SuggestionService(conn, client=_client(handler))
    response = service.suggest(john, SuggestionRequest(transcript="SD", local_date="2024-01-15"))

    assert [s.hours for s in response.suggestions] == [Decimal("2.33")]
    assert response.dropped_count == 1

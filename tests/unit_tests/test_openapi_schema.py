import pytest

from interview_assistant.main import initialize_backend_application


def test_every_route_is_mounted_under_api_prefix() -> None:
    paths = set(initialize_backend_application().openapi()["paths"])

    assert paths == {
        "/api/health",
        "/api/users/save",
        "/api/users/by-email/{email}",
        "/api/sessions/save",
        "/api/sessions/get/{email}",
        "/api/sessions/delete/{email}",
        "/api/interviews/create",
        "/api/interviews/unfinished/{email}",
        "/api/interviews/all",
        "/api/interviews/user/{email}",
        "/api/interviews/{interview_id}/question",
        "/api/interviews/{interview_id}/complete",
        "/api/interviews/{interview_id}/results",
        "/api/interviews/{interview_id}",
        "/api/evaluations/answer",
        "/api/questions/next",
        "/api/chat/advance",
        "/api/chat/state/{email}",
    }


def test_schemas_use_camel_case_fields() -> None:
    schemas = initialize_backend_application().openapi()["components"]["schemas"]

    assert "sessionData" in schemas["SessionSave"]["properties"]
    assert "createNewSession" in schemas["InterviewComplete"]["properties"]
    slot_schemas = [schema for name, schema in schemas.items() if name.startswith("QuestionSlotSchema")]
    assert slot_schemas
    for schema in slot_schemas:
        assert {"id", "timeLimit", "timedOut"} <= set(schema["properties"])


@pytest.mark.asyncio
async def test_docs_are_served(client) -> None:
    response = await client.get("/openapi.json")

    assert response.status_code == 200
    assert {tag["name"] for tag in response.json()["tags"]} == {"users", "sessions", "interviews", "evaluation", "chat"}

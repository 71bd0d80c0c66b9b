import pytest

from interview_assistant.services.evaluation import SERVICE_UNAVAILABLE
from interview_assistant.services.question_bank import QUESTION_POOLS

RESUME = "Ada Lovelace\nada@example.com\n+1 555 010 0100\nReact developer"


@pytest.mark.asyncio
async def test_evaluate_answer_falls_back_without_llm(client) -> None:
    response = await client.post(
        "/api/evaluations/answer",
        json={"question": "What does JSX stand for?", "answer": "", "difficulty": "easy", "timeTaken": 0},
    )

    assert response.status_code == 200
    evaluation = response.json()["evaluation"]
    assert evaluation["score"] == 4
    assert evaluation["accuracy"] == 40
    assert evaluation["error"] == SERVICE_UNAVAILABLE
    assert evaluation["feedback"].startswith("🤖 AI services unavailable.")


@pytest.mark.asyncio
async def test_evaluate_answer_rejects_unknown_difficulty(client) -> None:
    response = await client.post(
        "/api/evaluations/answer",
        json={"question": "What does JSX stand for?", "answer": "JavaScript XML", "difficulty": "expert"},
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid difficulty")
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_next_question_skips_previous_ones(client) -> None:
    asked = QUESTION_POOLS["hard"][:-1]

    response = await client.post("/api/questions/next", json={"difficulty": "hard", "previousQuestions": asked})

    assert response.status_code == 200
    question = response.json()["question"]
    assert question["question"] == QUESTION_POOLS["hard"][-1]
    assert question["difficulty"] == "hard"
    assert question["timeLimit"] == 120


@pytest.mark.asyncio
async def test_chat_upload_start_and_resume_by_email(client) -> None:
    uploaded = await client.post("/api/chat/advance", json={"event": {"type": "resume_uploaded", "text": RESUME}})
    assert uploaded.status_code == 200
    assert uploaded.json()["state"]["state"]["phase"] == "ready"
    assert uploaded.json()["remainingSeconds"] is None

    user = await client.get("/api/users/by-email/ada@example.com")
    assert user.status_code == 200
    assert user.json()["user"]["phone"] == "+1 555 010 0100"

    started = await client.post(
        "/api/chat/advance",
        json={"email": "ada@example.com", "event": {"type": "user_message", "text": "yes"}},
    )
    assert started.status_code == 200
    body = started.json()
    phase = body["state"]["state"]
    assert phase["phase"] == "interview"
    assert phase["current"]["sequenceId"] == 1
    assert phase["current"]["difficulty"] == "easy"
    assert phase["current"]["question"] in QUESTION_POOLS["easy"]
    assert 0 < body["remainingSeconds"] <= 20

    persisted = await client.get("/api/chat/state/ada@example.com")
    assert persisted.status_code == 200
    assert persisted.json()["state"]["state"]["attemptId"] == phase["attemptId"]

    unfinished = await client.get("/api/interviews/unfinished/ada@example.com")
    slots = unfinished.json()["interview"]["questions"]
    assert [slot["id"] for slot in slots] == [1]
    assert slots[0]["answered"] is False


@pytest.mark.asyncio
async def test_chat_timer_expiry_submits_and_moves_on(client) -> None:
    await client.post("/api/chat/advance", json={"event": {"type": "resume_uploaded", "text": RESUME}})
    await client.post("/api/chat/advance", json={"email": "ada@example.com", "event": {"type": "user_message", "text": "start"}})

    expired = await client.post("/api/chat/advance", json={"email": "ada@example.com", "event": {"type": "timer_expired"}})

    phase = expired.json()["state"]["state"]
    assert phase["current"]["sequenceId"] == 2
    assert phase["answers"][0]["answer"] == "No answer provided (time expired)"
    assert phase["answers"][0]["timedOut"] is True
    assert phase["answers"][0]["timeTaken"] == 20


@pytest.mark.asyncio
async def test_chat_rejects_messages_before_upload(client) -> None:
    response = await client.post("/api/chat/advance", json={"event": {"type": "user_message", "text": "hello"}})

    assert response.status_code == 400
    assert response.json() == {"message": "Messages are not accepted in the upload phase"}


@pytest.mark.asyncio
async def test_chat_state_of_unknown_user_is_not_found(client) -> None:
    response = await client.get("/api/chat/state/nobody@example.com")

    assert response.status_code == 404
    assert response.json() == {"message": "Session not found"}


@pytest.mark.asyncio
async def test_chat_state_ignores_foreign_session_blobs(client, candidate) -> None:
    blob = {"state": {"phase": "wizard", "step": 2}}
    await client.post("/api/sessions/save", json={"email": "ada@example.com", "sessionData": blob})

    response = await client.get("/api/chat/state/ada@example.com")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_chat_ignores_scores_sent_back_by_the_client(client) -> None:
    await client.post("/api/chat/advance", json={"event": {"type": "resume_uploaded", "text": RESUME}})
    started = await client.post("/api/chat/advance", json={"email": "ada@example.com", "event": {"type": "user_message", "text": "yes"}})
    forged = started.json()["state"]
    forged["state"]["answers"] = [{"id": seq, "question": f"Q{seq}", "answered": True, "score": 10} for seq in range(1, 6)]

    # With the persisted session in place the client copy is not used at all
    answered = await client.post(
        "/api/chat/advance", json={"state": forged, "event": {"type": "user_message", "text": "JavaScript XML"}}
    )
    assert answered.status_code == 200
    phase = answered.json()["state"]["state"]
    assert phase["current"]["sequenceId"] == 2
    assert [slot["id"] for slot in phase["answers"]] == [1]

    # Without one, interview progress is rebuilt from the recorded attempt
    await client.delete("/api/sessions/delete/ada@example.com")
    forged = answered.json()["state"]
    forged["state"]["answers"] = [{"id": seq, "question": f"Q{seq}", "answered": True, "score": 10} for seq in range(1, 6)]
    forged["state"]["current"]["issuedAt"] = "2099-01-01T00:00:00Z"
    second = await client.post(
        "/api/chat/advance", json={"state": forged, "event": {"type": "user_message", "text": "Props are read-only inputs"}}
    )
    assert second.status_code == 200
    phase = second.json()["state"]["state"]
    assert [slot["id"] for slot in phase["answers"]] == [1, 2]
    assert phase["answers"][1]["timedOut"] is False
    assert phase["current"]["sequenceId"] == 3

    unfinished = (await client.get("/api/interviews/unfinished/ada@example.com")).json()["interview"]
    assert unfinished["status"] == "in-progress"
    assert [slot["id"] for slot in unfinished["questions"] if slot["answered"]] == [1, 2]

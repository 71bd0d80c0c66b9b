from scripts.smoke_utils import API, BASE_URL, body_of, print_result, rand_str, safe_call

import httpx

ANSWERS = {
    1: "JSX lets you write markup inside JavaScript; Babel turns it into React.createElement calls.",
    2: "useState returns a value and a setter; calling the setter re-renders the component.",
    3: "Props flow down from parents and are read-only, state is owned and updated by the component itself.",
    4: "Middleware functions in Express receive req, res and next and can end the response or pass control on.",
    5: "Reconciliation diffs the new virtual DOM tree against the previous one and applies the minimal set of DOM updates.",
    6: "The event loop runs the call stack, then microtasks, then timers, I/O callbacks, setImmediate and close callbacks.",
}


def main() -> None:
    email = f"{rand_str()}@example.com"

    with httpx.Client(base_url=BASE_URL, timeout=60.0) as client:
        r, err = safe_call(client, "GET", f"{API}/health")
        print_result("GET /api/health", r, err)

        # Profile
        user_payload = {
            "name": "E2E Candidate",
            "email": email,
            "phone": "+1 555 010 0199",
            "resumeData": {"text": "E2E Candidate\nReact and Node developer", "fileType": "text/plain"},
        }
        r, err = safe_call(client, "POST", f"{API}/users/save", json=user_payload)
        print_result("POST /api/users/save", r, err)

        r, err = safe_call(client, "GET", f"{API}/users/by-email/{email}")
        print_result("GET /api/users/by-email/{email}", r, err)

        # Start, then start again to see the resume path
        r, err = safe_call(client, "POST", f"{API}/interviews/create", json={"email": email})
        print_result("POST /api/interviews/create", r, err)
        interview_id = body_of(r).get("interview", {}).get("id")

        r, err = safe_call(client, "POST", f"{API}/interviews/create", json={"email": email})
        print_result("POST /api/interviews/create (resume)", r, err)

        r, err = safe_call(client, "GET", f"{API}/interviews/unfinished/{email}")
        print_result("GET /api/interviews/unfinished/{email}", r, err)

        if not interview_id:
            return

        previous: list[str] = []
        final_answers = []
        for sequence_id, difficulty in enumerate(("easy", "easy", "medium", "medium", "hard", "hard"), start=1):
            r, err = safe_call(
                client, "POST", f"{API}/questions/next", json={"difficulty": difficulty, "previousQuestions": previous}
            )
            print_result(f"POST /api/questions/next ({sequence_id})", r, err)
            supplied = body_of(r).get("question") or {}
            question = supplied.get("question", f"Question {sequence_id}")
            previous.append(question)

            slot = {"id": sequence_id, "question": question, "difficulty": difficulty, "timeLimit": supplied.get("timeLimit")}
            r, err = safe_call(client, "PUT", f"{API}/interviews/{interview_id}/question", json={"questionData": slot})
            print_result(f"PUT /api/interviews/{{id}}/question ({sequence_id})", r, err)

            answer = ANSWERS[sequence_id]
            r, err = safe_call(
                client,
                "POST",
                f"{API}/evaluations/answer",
                json={"question": question, "answer": answer, "difficulty": difficulty, "timeTaken": 10},
            )
            print_result(f"POST /api/evaluations/answer ({sequence_id})", r, err)
            evaluation = body_of(r).get("evaluation") or {}

            answered = {
                "id": sequence_id,
                "answered": True,
                "answer": answer,
                "score": evaluation.get("score"),
                "feedback": evaluation.get("feedback"),
                "timeTaken": 10,
            }
            r, err = safe_call(client, "PUT", f"{API}/interviews/{interview_id}/question", json={"questionData": answered})
            print_result(f"PUT /api/interviews/{{id}}/question answered ({sequence_id})", r, err)
            final_answers.append(answered)

        r, err = safe_call(client, "PUT", f"{API}/interviews/{interview_id}/complete", json={"allAnswers": final_answers})
        print_result("PUT /api/interviews/{id}/complete", r, err)

        r, err = safe_call(client, "GET", f"{API}/interviews/{interview_id}/results")
        print_result("GET /api/interviews/{id}/results", r, err)

        r, err = safe_call(client, "GET", f"{API}/interviews/{interview_id}")
        print_result("GET /api/interviews/{id}", r, err)

        r, err = safe_call(client, "GET", f"{API}/interviews/all", params={"search": email, "sortBy": "averageScore"})
        print_result("GET /api/interviews/all", r, err)

        r, err = safe_call(client, "GET", f"{API}/interviews/user/{email}")
        print_result("GET /api/interviews/user/{email}", r, err)

        # UI session snapshot
        r, err = safe_call(client, "POST", f"{API}/sessions/save", json={"email": email, "sessionData": {"step": "done"}})
        print_result("POST /api/sessions/save", r, err)
        r, err = safe_call(client, "GET", f"{API}/sessions/get/{email}")
        print_result("GET /api/sessions/get/{email}", r, err)
        r, err = safe_call(client, "DELETE", f"{API}/sessions/delete/{email}")
        print_result("DELETE /api/sessions/delete/{email}", r, err)


if __name__ == "__main__":
    main()

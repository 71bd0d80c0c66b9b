from scripts.smoke_utils import API, BASE_URL, body_of, print_result, rand_str, safe_call

import httpx

RESUME_TEXT = "Chat Candidate\n{email}\n+1 555 010 0123\nFull stack developer, React and Node.js"


def main() -> None:
    email = f"{rand_str()}@example.com"

    with httpx.Client(base_url=BASE_URL, timeout=60.0) as client:
        event = {"type": "resume_uploaded", "text": RESUME_TEXT.format(email=email)}
        r, err = safe_call(client, "POST", f"{API}/chat/advance", json={"event": event})
        print_result("POST /api/chat/advance resume_uploaded", r, err)
        state = body_of(r).get("state")

        r, err = safe_call(client, "POST", f"{API}/chat/advance", json={"state": state, "event": {"type": "user_message", "text": "yes"}})
        print_result("POST /api/chat/advance start", r, err)

        # Answer every question from the persisted state
        for round_number in range(1, 7):
            r, err = safe_call(
                client,
                "POST",
                f"{API}/chat/advance",
                json={"email": email, "event": {"type": "user_message", "text": f"Answer number {round_number} with some detail about React"}},
            )
            print_result(f"POST /api/chat/advance answer {round_number}", r, err)

        r, err = safe_call(client, "GET", f"{API}/chat/state/{email}")
        print_result("GET /api/chat/state/{email}", r, err)
        phase = body_of(r).get("state", {}).get("state", {}).get("phase")
        print(f"   Final phase: {phase}")


if __name__ == "__main__":
    main()

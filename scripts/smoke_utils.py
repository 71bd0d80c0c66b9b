import json
import os
import random
import string

import httpx

# Allow overriding base URL/prefix for smoke runs (e.g., pointing at staging)
BASE_URL = os.getenv("SMOKE_BASE_URL", "http://127.0.0.1:5000")
API = os.getenv("SMOKE_API_PREFIX", "/api")


def rand_str(n: int = 8) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=n))


def safe_json(resp: httpx.Response):
    try:
        return resp.json()
    except ValueError:
        return (resp.text or "")[:300]


def print_result(name: str, resp: httpx.Response | None, error: str | None = None) -> None:
    if error is not None:
        print(json.dumps({"name": name, "status": None, "ok": False, "error": error}))
        return
    ok = 200 <= resp.status_code < 300 if resp is not None else False
    print(json.dumps({
        "name": name,
        "status": None if resp is None else resp.status_code,
        "ok": ok,
        "body": None if resp is None else safe_json(resp)
    }, default=str))


def safe_call(client: httpx.Client, method: str, url: str, **kwargs) -> tuple[httpx.Response | None, str | None]:
    try:
        r = client.request(method, url, **kwargs)
        return r, None
    except httpx.HTTPError as e:
        return None, str(e)


def body_of(resp: httpx.Response | None) -> dict:
    body = safe_json(resp) if resp is not None else {}
    return body if isinstance(body, dict) else {}

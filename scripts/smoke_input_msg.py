#!/usr/bin/env python3
"""
Smoke test against a RUNNING chat-microservice server.

Uses `requests` to hit /info, post a parcel to /inputMsg, and check the
400 path for an empty parcel. Exits non-zero if anything looks wrong.

Run from the repository root after starting the server:

        uvicorn chat_microservice.main:create_app --factory --port 3000
        python scripts/smoke_input_msg.py

Environment Variables:
  BASE_URL (optional, default: http://127.0.0.1:3000): Backend URL
  SMOKE_PARCEL (optional): Prompt text to send
"""

import os
import sys

import requests


BASE = os.getenv("BASE_URL", "http://127.0.0.1:3000").rstrip("/")
PARCEL = os.getenv("SMOKE_PARCEL", "Say hello in five words")


def post_input(payload: dict):
    return requests.post(f"{BASE}/inputMsg", json=payload, timeout=60)


def main() -> int:
    failures = []

    r = requests.get(f"{BASE}/info", timeout=10)
    if r.status_code != 200 or "info" not in r.json():
        failures.append(f"/info -> {r.status_code} {r.text}")
    else:
        print("info:", r.json()["info"])

    r = post_input({"parcel": PARCEL})
    if r.status_code != 200:
        failures.append(f"/inputMsg -> {r.status_code} {r.text}")
    else:
        body = r.json()
        print("reply:", body.get("message"))
        print("tokens:", body.get("total_tokens"))
        print("persist:", r.headers.get("x-persist-status"))
        if body.get("prompt") != PARCEL:
            failures.append(f"prompt mismatch: {body.get('prompt')!r}")

    r = post_input({"parcel": ""})
    if r.status_code != 400 or r.json() != {"status": "failed"}:
        failures.append(f"empty parcel -> {r.status_code} {r.text}")

    if failures:
        for f in failures:
            print(f"[FAIL] {f}")
        return 2

    print("[PASS] chat-microservice smoke checks")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

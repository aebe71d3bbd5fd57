#!/usr/bin/env python3
"""
End-to-end check against a running server: send one user turn, print the reply as it streams,
then confirm both turns were stored. Prints PASS/FAIL.
"""
import sys
import uuid

import httpx

API_BASE = "http://127.0.0.1:8000"

cid = f"e2e-{uuid.uuid4().hex[:8]}"
payload = {
    "conversationId": cid,
    "messages": [{"role": "user", "content": "I've been feeling overwhelmed at work lately."}],
    "identity": f"e2e-{cid}",
}

try:
    with httpx.Client(timeout=60.0) as c:
        with c.stream("POST", f"{API_BASE}/api/chat", json=payload) as r:
            if r.status_code != 200:
                r.read()
                print(f"FAIL: status {r.status_code}: {r.text}")
                sys.exit(1)
            if r.headers.get("content-type", "").startswith("application/json"):
                r.read()
                print("FAIL: throttled ->", r.json().get("message"))
                sys.exit(1)
            reply = ""
            for piece in r.iter_text():
                reply += piece
                print(piece, end="", flush=True)
            print()
        if not reply.strip():
            print("FAIL: empty reply")
            sys.exit(1)
        rows = c.get(f"{API_BASE}/api/messages/{cid}").json()
        roles = [m["role"] for m in rows]
        if roles != ["user", "assistant"]:
            print("FAIL: unexpected stored turns ->", roles)
            sys.exit(1)
        print("PASS")
        sys.exit(0)
except httpx.HTTPError as e:
    print("ERROR:", e)
    sys.exit(3)

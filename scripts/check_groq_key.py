#!/usr/bin/env python3
"""
Check whether GROQ_API_KEY is present in the environment and if it appears valid by calling the models endpoint.
This script prints only non-sensitive status lines:
 - MISSING (no env var)
 - VALID (200 OK)
 - INVALID (<status code>)
 - ERROR (<message>)
"""
import os
import sys

import httpx
from dotenv import load_dotenv

load_dotenv()

KEY = os.getenv("GROQ_API_KEY")
if not KEY:
    print("MISSING")
    sys.exit(0)

# Derive the models endpoint from the configured completions URL
api_url = os.getenv("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions")
url = api_url.rsplit("/chat/completions", 1)[0] + "/models"
headers = {"Authorization": f"Bearer {KEY}"}

try:
    with httpx.Client(timeout=10.0) as client:
        r = client.get(url, headers=headers)
        if r.status_code == 200:
            print("VALID")
            sys.exit(0)
        elif r.status_code == 401:
            print("INVALID: 401 Unauthorized")
            sys.exit(1)
        else:
            print(f"INVALID: {r.status_code}")
            sys.exit(1)
except httpx.HTTPError as e:
    print("ERROR:", str(e))
    sys.exit(3)

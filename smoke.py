#!/usr/bin/env python3
"""
Smoke test a running Cal booking to Notion CRM bridge.

Signs sample webhooks with CAL_WEBHOOK_SECRET. The booking check creates a
real page in the configured Notion database.
"""

import json
import os
import sys
import time
import requests

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from tools.signature import SIGNATURE_HEADER, compute_signature

def post_webhook(base_url, secret, event, signature=None):
    body = json.dumps(event).encode()
    headers = {
        "Content-Type": "application/json",
        SIGNATURE_HEADER: signature or compute_signature(secret, body),
    }
    return requests.post(f"{base_url}/api/cal-webhook", data=body, headers=headers, timeout=30)

def check_health(base_url, secret):
    """Test the health check endpoint."""
    try:
        response = requests.get(f"{base_url}/health", timeout=10)
        if response.status_code == 200:
            print(f"✅ Health check passed: {response.json()}")
            return True
        print(f"❌ Health check failed: {response.status_code}")
        return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Health check error: {e}")
        return False

def check_skipped_event(base_url, secret):
    """Non-booking events are acknowledged without a CRM entry."""
    try:
        response = post_webhook(base_url, secret, {"triggerEvent": "BOOKING_CANCELLED", "payload": {}})
        if response.status_code == 200 and response.json() == {"skipped": True}:
            print("✅ Skipped event test passed")
            return True
        print(f"❌ Skipped event test failed: {response.status_code} {response.text}")
        return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Skipped event test error: {e}")
        return False

def check_bad_signature(base_url, secret):
    """Requests signed with the wrong key are rejected."""
    try:
        response = post_webhook(base_url, secret, {"triggerEvent": "BOOKING_CREATED"}, signature="0" * 64)
        if response.status_code == 401:
            print("✅ Bad signature test passed")
            return True
        print(f"❌ Bad signature not rejected: {response.status_code}")
        return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Bad signature test error: {e}")
        return False

def check_booking_created(base_url, secret):
    """A booking creates one CRM entry."""
    event = {
        "triggerEvent": "BOOKING_CREATED",
        "payload": {
            "attendees": [{"name": "Smoke Test", "email": "smoke.test@example.com"}],
            "responses": {
                "how_found": {"value": "Smoke test"},
                "notes": {"value": "Created by smoke.py, safe to delete"},
                "domain": {"value": "https://example.com"}
            }
        }
    }
    try:
        response = post_webhook(base_url, secret, event)
        if response.status_code == 200 and response.json() == {"ok": True}:
            print("✅ Booking created test passed")
            return True
        print(f"❌ Booking created test failed: {response.status_code} {response.text}")
        return False
    except requests.exceptions.RequestException as e:
        print(f"❌ Booking created test error: {e}")
        return False

def main():
    """Run all checks."""
    load_dotenv()
    secret = os.getenv("CAL_WEBHOOK_SECRET")
    if not secret:
        print("CAL_WEBHOOK_SECRET must be set")
        return 1

    base_url = os.getenv("BASE_URL", "http://localhost:8000")

    print("🚀 Smoke testing Cal booking to Notion CRM bridge")
    print("=" * 50)
    time.sleep(1)

    checks = [
        ("Health Check", check_health),
        ("Skipped Event", check_skipped_event),
        ("Bad Signature", check_bad_signature),
        ("Booking Created", check_booking_created),
    ]

    passed = 0
    for name, check in checks:
        print(f"\n🧪 Running {name}...")
        if check(base_url, secret):
            passed += 1

    print("\n" + "=" * 50)
    print(f"📊 Results: {passed}/{len(checks)} checks passed")
    return 0 if passed == len(checks) else 1

if __name__ == "__main__":
    sys.exit(main())

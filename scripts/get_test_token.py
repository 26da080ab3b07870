#!/usr/bin/env python3
"""
Get a Firebase Auth ID token for local testing with the Firebase Auth Emulator.

Usage:
    python get_test_token.py [--email EMAIL] [--password PASSWORD]

The Firebase Auth Emulator must be running on localhost:9099.
"""

import argparse
import sys

import httpx

FIREBASE_API_KEY = "demo-key"  # Any value works against the emulator
EMULATOR_URL = (
    "http://localhost:9099/identitytoolkit.googleapis.com/v1/"
    "accounts:signInWithPassword"
)
DEFAULT_EMAIL = "test@example.com"
DEFAULT_PASSWORD = "hello1234"


def get_test_token(email: str, password: str) -> str:
    """Sign in against the emulator and return the ID token."""
    try:
        response = httpx.post(
            EMULATOR_URL,
            params={"key": FIREBASE_API_KEY},
            json={"email": email, "password": password, "returnSecureToken": True},
        )
    except httpx.ConnectError:
        print("✗ Connection Error: Could not connect to Firebase Auth Emulator")
        print("\nMake sure the emulator is running:")
        print("  firebase emulators:start --only auth")
        sys.exit(1)

    if response.status_code != 200:
        print(f"✗ Error: {response.status_code}")
        print(f"Response: {response.text}")
        print("\nMake sure:")
        print("1. Firebase Auth Emulator is running")
        print(f"2. User {email} exists in the emulator (http://localhost:4000)")
        sys.exit(1)

    token = response.json()["idToken"]
    print(f"✓ Successfully authenticated as {email}")
    print(f"\nID Token:\n{token}")
    print("\nUse this in your requests:")
    print(f'export TOKEN="{token}"')
    print("\nOr use directly in curl:")
    print(
        f'curl -H "Authorization: Bearer {token}" '
        "http://localhost:8000/api/v1/workout-plans"
    )
    return token


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Get an emulator ID token")
    parser.add_argument("--email", default=DEFAULT_EMAIL)
    parser.add_argument("--password", default=DEFAULT_PASSWORD)
    args = parser.parse_args()

    print("Firebase Auth Emulator - Get Test Token")
    print("=" * 50)
    get_test_token(args.email, args.password)

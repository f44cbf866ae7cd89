#!/usr/bin/env python3
"""
Generate an API key for the Portfolio Snapshots service.

Usage:
    python scripts/generate_api_key.py
    python scripts/generate_api_key.py --bytes 48
"""

import argparse
import secrets


def generate_api_key(num_bytes: int = 32) -> str:
    """Generate a URL-safe random API key."""
    return secrets.token_urlsafe(num_bytes)


def main():
    parser = argparse.ArgumentParser(description="Generate an API key for the service")
    parser.add_argument("--bytes", "-b", type=int, default=32, help="Random bytes in the key")
    args = parser.parse_args()

    api_key = generate_api_key(args.bytes)

    print("\n" + "=" * 60)
    print("Add this to your .env file:")
    print("=" * 60)
    print(f"\nAPI_KEY={api_key}")
    print("\nSend it on every request as the X-API-Key header.")
    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()

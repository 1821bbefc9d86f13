#!/usr/bin/env python3
"""
Mark confirmed appointments whose slot has passed as completed.

Meant to be run from cron; the API has no background scheduler.

Usage:
    python scripts/complete_appointments.py
    python scripts/complete_appointments.py --api-url https://api.example.com

Environment Variables:
    API_URL: Base API URL including any API prefix (default: http://localhost:5000)
"""

import argparse
import os
import sys

import dotenv
import requests

dotenv.load_dotenv()


def complete_elapsed(api_url: str) -> int:
    """Trigger the completion sweep and return the number of appointments completed."""
    url = f"{api_url.rstrip('/')}/appointments/complete-elapsed"

    try:
        response = requests.post(url, timeout=30)
        response.raise_for_status()
        return int(response.json()["completed"])
    except requests.exceptions.HTTPError as e:
        print(f"HTTP Error: {e}", file=sys.stderr)
        print(f"Response: {e.response.text}", file=sys.stderr)
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"Request Error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Complete appointments whose slot has passed")
    parser.add_argument(
        "--api-url",
        default=os.getenv("API_URL", "http://localhost:5000"),
        help="Base API URL (default: $API_URL or http://localhost:5000)",
    )
    args = parser.parse_args()

    completed = complete_elapsed(args.api_url)
    print(f"✓ {completed} appointment(s) marked as completed")


if __name__ == "__main__":
    main()

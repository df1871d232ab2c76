#!/usr/bin/env python3
"""Script to generate or check a SIGNUP_ENCRYPTION_KEY."""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from waitlist.services.crypto.codec import KEY_LENGTH, generate_key, load_key


def main():
    parser = argparse.ArgumentParser(description="Generate an AES-256-GCM key for stored signups")
    parser.add_argument("--check", metavar="KEY", help="Validate an existing key instead of generating one")
    parser.add_argument("--env", action="store_true", help="Print as a .env assignment")

    args = parser.parse_args()

    if args.check is not None:
        try:
            load_key(args.check)
        except ValueError as e:
            print(f"Invalid key: {e}")
            sys.exit(1)
        print(f"Key is valid ({KEY_LENGTH} bytes)")
        return

    key = generate_key()
    if args.env:
        print(f"SIGNUP_ENCRYPTION_KEY={key}")
    else:
        print(key)


if __name__ == "__main__":
    main()

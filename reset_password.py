#!/usr/bin/env python3
"""
Reset a user's password directly in the marketplace SQLite database.

The script does not read or reveal existing passwords.  It stores a
new hash (PBKDF2-HMAC-SHA256, format "salthex$hashhex") for the given
email, using the same hashing as the API.

Usage:
    python reset_password.py --db ./marketplace.db --email admin@example.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sqlite3
import sys

from booking_marketplace_api.app.core.db import utcnow_iso
from booking_marketplace_api.app.core.security import hash_password
from booking_marketplace_api.app.schemas.user import MIN_PASSWORD_LENGTH


def main():
    ap = argparse.ArgumentParser(description="Reset a marketplace user's password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./marketplace.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        print(f"[!] Password must have at least {MIN_PASSWORD_LENGTH} characters.", file=sys.stderr)
        sys.exit(1)

    email = args.email.strip().lower()
    conn = sqlite3.connect(args.db)
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM users WHERE email = ?", (email,))
        if not cur.fetchone():
            print(f"[!] No user found with email: {email}", file=sys.stderr)
            sys.exit(2)

        cur.execute(
            "UPDATE users SET password = ?, updated_at = ? WHERE email = ?",
            (hash_password(new_password), utcnow_iso(), email),
        )
        conn.commit()
        print(f"[+] Password updated for user: {email}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()

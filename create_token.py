"""Print a long-lived access token for an existing account.

Usage:
    python create_token.py admin@example.com [days]
"""
import sys

from booking_marketplace_api.app.core.security import create_access_token

if len(sys.argv) < 2:
    sys.exit("usage: python create_token.py EMAIL [DAYS]")
email = sys.argv[1]
days = int(sys.argv[2]) if len(sys.argv) > 2 else 365
token = create_access_token({"sub": email}, expires_delta=days * 24 * 60 * 60)
print(token)

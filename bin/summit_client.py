# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Command-line client for the DeepTech Summit API.

Keeps its login session the way the web frontend does – a client-held
``{"user", "expiry"}`` record that lapses after 24 hours by default – in
~/.summit/session.json (override with SUMMIT_SESSION_FILE; the lifetime
with SUMMIT_SESSION_TTL_HOURS).

    python bin/summit_client.py login ana@example.com
    python bin/summit_client.py whoami
    python bin/summit_client.py stats        # admins only
    python bin/summit_client.py logout
"""

import argparse
import getpass
import json
import os
import sys
from pathlib import Path

import requests

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.session import DEFAULT_TTL_MS, JsonFileStore, SessionManager  # noqa: E402

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_SESSION_FILE = Path.home() / ".summit" / "session.json"
TIMEOUT = 15
HOUR_MS = 60 * 60 * 1000


def _sessions() -> SessionManager:
    path = Path(os.environ.get("SUMMIT_SESSION_FILE", DEFAULT_SESSION_FILE))
    ttl_hours = os.environ.get("SUMMIT_SESSION_TTL_HOURS")
    ttl_ms = int(float(ttl_hours) * HOUR_MS) if ttl_hours else DEFAULT_TTL_MS
    return SessionManager(JsonFileStore(path), ttl_ms=ttl_ms)


def _fail(response: requests.Response) -> int:
    try:
        message = response.json().get("message", response.text)
    except ValueError:
        message = response.text
    print(f"Error {response.status_code}: {message}", file=sys.stderr)
    return 1


def cmd_login(args) -> int:
    password = args.password or getpass.getpass("Password: ")
    response = requests.post(
        f"{args.api_url}/api/auth/login",
        json={"email": args.email, "password": password},
        timeout=TIMEOUT,
    )
    if response.status_code != 200:
        return _fail(response)

    data = response.json()
    _sessions().issue(data["user"], token=data.get("token"))
    print(f"Logged in as {data['user']['name']} <{data['user']['email']}>")
    return 0


def cmd_logout(args) -> int:
    _sessions().destroy()
    print("Logged out")
    return 0


def cmd_whoami(args) -> int:
    user = _sessions().read()
    if user is None:
        print("Not logged in (or the session has expired)")
        return 1
    print(json.dumps(user, indent=2))
    return 0


def cmd_stats(args) -> int:
    record = _sessions().read_record()
    if record is None:
        print("Not logged in (or the session has expired)")
        return 1

    headers = {}
    if record.get("token"):
        headers["Authorization"] = f"Bearer {record['token']}"
    else:
        headers["adminid"] = record["user"]["_id"]

    response = requests.get(f"{args.api_url}/api/admin/stats", headers=headers, timeout=TIMEOUT)
    if response.status_code != 200:
        return _fail(response)
    print(json.dumps(response.json(), indent=2))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="DeepTech Summit API client")
    parser.add_argument("--api-url", default=os.environ.get("SUMMIT_API_URL", DEFAULT_API_URL))
    sub = parser.add_subparsers(dest="command", required=True)

    p_login = sub.add_parser("login", help="log in and store the session")
    p_login.add_argument("email")
    p_login.add_argument("--password", help="prompted for when omitted")
    p_login.set_defaults(func=cmd_login)

    sub.add_parser("logout", help="forget the stored session").set_defaults(func=cmd_logout)
    sub.add_parser("whoami", help="show the signed-in user").set_defaults(func=cmd_whoami)
    sub.add_parser("stats", help="admin dashboard counters").set_defaults(func=cmd_stats)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

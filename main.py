#!/usr/bin/env python3
"""
authgate -- Operator CLI for the authentication layer.

Reads the "auth" config group from the environment (AUTH_* variables or a
.env file) exactly as the library does.

Usage:
  python main.py hash 's3cret'                 # digest for the users table
  python main.py verify alice                  # prompts for the password
  python main.py verify alice --password s3cret
  python main.py --verbose verify alice

Environment variables:
  AUTH_HASH_KEY     Required. HMAC secret used to hash passwords.
  AUTH_HASH_METHOD  HMAC algorithm (default: sha256).
  AUTH_USERS        JSON object of username -> hash.
  AUTH_USERS_FILE   Path to a JSON file with the same shape.

Exit status: 0 on success, 1 when credentials are rejected, 2 on
configuration or session errors.
"""

import argparse
import logging
from getpass import getpass
from typing import Optional

from auth.service import AuthService
from core.errors import AuthError


def _cmd_hash(auth: AuthService, args: argparse.Namespace) -> int:
    print(auth.hash(args.password))
    return 0


def _cmd_verify(auth: AuthService, args: argparse.Namespace) -> int:
    password = args.password if args.password is not None else getpass("Password: ")
    if not auth.login(args.username, password):
        print(f"  [!] Invalid username or password for '{args.username}'.")
        return 1
    print(f"  OK: '{auth.get_user()}' authenticated.")
    auth.logout()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="authgate",
        description="Hash passwords and check credentials against the configured auth driver.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  AUTH_HASH_KEY=change-me python main.py hash 's3cret'
  AUTH_USERS='{"alice": "<digest>"}' python main.py verify alice
        """,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log authgate activity to stderr",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_hash = sub.add_parser("hash", help="Print the keyed hash of a password")
    p_hash.add_argument("password", help="Plaintext password to hash")
    p_hash.set_defaults(func=_cmd_hash)

    p_verify = sub.add_parser("verify", help="Check a username/password against the configured driver")
    p_verify.add_argument("username", help="Username to log in")
    p_verify.add_argument(
        "--password",
        default=None,
        help="Password to check (prompted for when omitted; avoid on shared machines)",
    )
    p_verify.set_defaults(func=_cmd_verify)

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    try:
        auth = AuthService.instance()
        return args.func(auth, args)
    except AuthError as e:
        print(f"  [!] {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

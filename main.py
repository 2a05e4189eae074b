#!/usr/bin/env python3
"""
Employee directory auth -- command-line administration.

Bootstraps accounts without going through the HTTP API, which itself needs an
admin to exist before anyone can provision anything.

Usage:
  python main.py add-admin admin@example.com
  python main.py list-users

Environment variables (or .env):
  SECRET_KEY, JWT_ISSUER, JWT_AUDIENCE   Required signing configuration.
  DATABASE_URL                           SQLAlchemy URL (default: ./empdir_auth.db)
"""

import argparse
import logging
import sys
from typing import Optional

from auth.passwords import admin_bootstrap_password
from auth.provisioning import NewAdmin
from container import build_services
from core.config import get_settings
from core.errors import ServiceError


def _add_admin(args: argparse.Namespace) -> int:
    services = build_services(get_settings())
    try:
        created = services.provisioning.add_admin(NewAdmin(email=args.email))
    except ServiceError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        services.close()
    if not created:
        print(f"  [!] A user with email '{args.email}' already exists.")
        return 1
    print(f"  Admin '{args.email.strip().lower()}' created.")
    print(f"  Bootstrap password: {admin_bootstrap_password()} (must be changed at first login)")
    return 0


def _list_users(args: argparse.Namespace) -> int:
    services = build_services(get_settings())
    try:
        summaries = services.users.list_all()
    finally:
        services.close()
    if not summaries:
        print("  No users.")
        return 0
    for s in summaries:
        flag = " (must change password)" if s.must_change_password else ""
        print(f"  {s.id:>5}  {s.role:<9} {s.email}{flag}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    parser = argparse.ArgumentParser(
        prog="empdir-auth",
        description="Account administration for the employee directory auth layer.",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    add_admin = sub.add_parser("add-admin", help="Create an admin account with the bootstrap password")
    add_admin.add_argument("email", help="Email address of the new admin")
    add_admin.set_defaults(func=_add_admin)

    list_users = sub.add_parser("list-users", help="List all accounts in creation order")
    list_users.set_defaults(func=_list_users)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

"""CLI for user management and import debugging.

Usage:
    python -m ouca.cli create-user --username admin --email admin@example.com --password secret --admin --importer
    python -m ouca.cli list-users
    python -m ouca.cli set-permissions --username admin --importer
    python -m ouca.cli set-permissions --username admin --no-importer
    python -m ouca.cli import-file --username admin --kind locality --file localities.csv
    python -m ouca.cli import-status --upload-id <uuid>
"""

from __future__ import annotations

import argparse
import sys
import uuid
from pathlib import Path

from sqlalchemy import select

from ouca.database import sync_session_factory
from ouca.models import *  # noqa: F401, F403 - ensure all models are loaded
from ouca.models.user import User
from ouca.schemas.import_status import ImportStatus, ImportStatusValue, ImportType
from ouca.services.auth_service import hash_password


def _get_user(db, username: str) -> User:  # type: ignore[no-untyped-def]
    user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user is None:
        print(f"Error: user '{username}' not found")
        sys.exit(1)
    return user


def _print_status(status: ImportStatus) -> None:
    print(f"Import:   {status.upload_id}")
    print(f"Kind:     {status.entity_kind.value}")
    print(f"Status:   {status.status.value}")
    total = status.progress.total_rows
    print(f"Rows:     {status.progress.processed_rows}/{total if total is not None else '?'}")
    if status.summary:
        print(f"Inserted: {status.summary.inserted_rows}")
        print(f"Rejected: {status.summary.rejected_rows}")
    if status.error_description:
        print(f"Error:    {status.error_description}")
    if status.errors:
        print(f"\n{'Row':<8} {'Message'}")
        print("-" * 80)
        for error in status.errors:
            print(f"{error.row_number:<8} {error.message}")


def create_user(args: argparse.Namespace) -> None:
    with sync_session_factory() as db:
        existing = db.execute(
            select(User).where((User.username == args.username) | (User.email == args.email))
        ).scalar_one_or_none()
        if existing is not None:
            print(f"Error: username '{args.username}' or email '{args.email}' already exists")
            sys.exit(1)

        user = User(
            username=args.username,
            email=args.email,
            hashed_password=hash_password(args.password),
            is_admin=args.admin,
            can_import=args.importer,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        print(
            f"Created user: {user.username} (id={user.id}, admin={user.is_admin}, "
            f"importer={user.can_import})"
        )


def list_users(_args: argparse.Namespace) -> None:
    with sync_session_factory() as db:
        users = db.execute(select(User).order_by(User.created_at)).scalars().all()

        if not users:
            print("No users found.")
            return

        print(f"{'ID':<38} {'Username':<20} {'Active':<8} {'Admin':<8} {'Importer':<8}")
        print("-" * 86)
        for u in users:
            print(
                f"{str(u.id):<38} {u.username:<20} {'yes' if u.is_active else 'no':<8} "
                f"{'yes' if u.is_admin else 'no':<8} {'yes' if u.can_import else 'no':<8}"
            )
        print(f"\nTotal: {len(users)} user(s)")


def set_permissions(args: argparse.Namespace) -> None:
    with sync_session_factory() as db:
        user = _get_user(db, args.username)
        if args.admin is not None:
            user.is_admin = args.admin
        if args.importer is not None:
            user.can_import = args.importer
        db.commit()
        print(
            f"User '{user.username}' admin={'yes' if user.is_admin else 'no'} "
            f"importer={'yes' if user.can_import else 'no'}"
        )


def import_file(args: argparse.Namespace) -> None:
    """Run an import in-process, without going through Celery."""
    from ouca.services.import_service import import_file_content

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file '{path}' not found")
        sys.exit(1)

    with sync_session_factory() as db:
        user = _get_user(db, args.username)
        status = ImportStatus(
            upload_id=str(uuid.uuid4()),
            user_id=user.id,
            entity_kind=ImportType(args.kind),
        )
        status = import_file_content(db, path.read_bytes(), status)

    _print_status(status)
    if status.status is ImportStatusValue.FAILED:
        sys.exit(1)


def import_status(args: argparse.Namespace) -> None:
    from ouca.services.import_status_store import get_status_store

    status = get_status_store().read(args.upload_id)
    if status is None:
        print(f"Error: import '{args.upload_id}' not found (unknown or expired)")
        sys.exit(1)
    _print_status(status)


def main() -> None:
    parser = argparse.ArgumentParser(prog="ouca.cli", description="Ouca user and import management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # create-user
    p_create = subparsers.add_parser("create-user", help="Create a new user")
    p_create.add_argument("--username", required=True)
    p_create.add_argument("--email", required=True)
    p_create.add_argument("--password", required=True)
    p_create.add_argument("--admin", action="store_true", default=False)
    p_create.add_argument("--importer", action="store_true", default=False)
    p_create.set_defaults(func=create_user)

    # list-users
    p_list = subparsers.add_parser("list-users", help="List all users")
    p_list.set_defaults(func=list_users)

    # set-permissions
    p_perms = subparsers.add_parser("set-permissions", help="Grant or revoke admin/import rights")
    p_perms.add_argument("--username", required=True)
    group = p_perms.add_mutually_exclusive_group()
    group.add_argument("--admin", action="store_true", dest="admin", default=None)
    group.add_argument("--no-admin", action="store_false", dest="admin")
    group2 = p_perms.add_mutually_exclusive_group()
    group2.add_argument("--importer", action="store_true", dest="importer", default=None)
    group2.add_argument("--no-importer", action="store_false", dest="importer")
    p_perms.set_defaults(func=set_permissions)

    # import-file
    p_import = subparsers.add_parser("import-file", help="Import a file synchronously")
    p_import.add_argument("--username", required=True, help="Owner of the imported rows")
    p_import.add_argument("--kind", required=True, choices=[t.value for t in ImportType])
    p_import.add_argument("--file", required=True)
    p_import.set_defaults(func=import_file)

    # import-status
    p_status = subparsers.add_parser("import-status", help="Show the status of a queued import")
    p_status.add_argument("--upload-id", required=True)
    p_status.set_defaults(func=import_status)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Create (or promote) an account from the command line.

The web surface only creates `user` accounts, so the first administrator is
bootstrapped here.
"""
from __future__ import annotations

from getpass import getpass

from membership.auth.passwords import hash_password
from membership.auth.users import ROLES, UserStore
from membership.auth.validation import validate_signup
from membership.config import Settings
from membership.errors import ValidationError
from membership.infra.document_store import DocumentCollection


def main() -> None:
    settings = Settings.from_env()
    users = UserStore(DocumentCollection("users", settings.users_path))

    email = input("Email: ").strip()
    role = (input("Role [user/admin]: ").strip().lower() or "user")
    if role not in ROLES:
        raise SystemExit(f"Unknown role '{role}'")

    existing = users.find_by_email(email)
    if existing:
        users.update_role(existing.id, role)
        print(f"OK -> {existing.email} is now {role}")
        return

    name = input("Name: ").strip()
    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    try:
        form = validate_signup({"name": name, "email": email, "password": pw1})
    except ValidationError as exc:
        raise SystemExit(exc.message)

    user = users.create(name=form.name, email=form.email, password_hash=hash_password(form.password), user_type=role)
    print(f"OK -> {user.email} ({user.user_type}) in {settings.users_path}")


if __name__ == "__main__":
    main()

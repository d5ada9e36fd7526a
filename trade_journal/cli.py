"""CLI tool for account operations.

Usage:
    python -m trade_journal.cli create-user
"""

import sys
import getpass

from sqlmodel import Session, select

from trade_journal.database import engine, create_db_and_tables
from trade_journal.models.user import User
from trade_journal.services.auth import hash_password


def create_user():
    """Create a journal account interactively."""
    create_db_and_tables()

    email = input("Email: ").strip().lower()
    if not email or "@" not in email:
        print("Please provide a valid email.")
        sys.exit(1)

    with Session(engine) as session:
        existing = session.exec(select(User).where(User.email == email)).first()
        if existing:
            print(f"User '{email}' already exists.")
            sys.exit(1)

    name = input("Name: ").strip()
    if not name:
        print("Name cannot be empty.")
        sys.exit(1)

    password = getpass.getpass("Password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters.")
        sys.exit(1)
    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        print("Passwords do not match.")
        sys.exit(1)

    user = User(email=email, name=name, hashed_password=hash_password(password))

    with Session(engine) as session:
        session.add(user)
        session.commit()
        session.refresh(user)
        print(f"\nUser '{email}' created with id {user.id}.")


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m trade_journal.cli <command>")
        print("Commands: create-user")
        sys.exit(1)

    command = sys.argv[1]
    if command == "create-user":
        create_user()
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
Example 01: Decoding rows

This example demonstrates mapping sqlite3 rows to dataclasses, Pydantic
models and positional tuples.
"""

from dataclasses import dataclass
from pydantic import BaseModel
import sqlite3

from row_derive import FromRow, build_plan, derive_from_row, execute


@dataclass
class UserDataclass:
    """User model using dataclass"""
    id: int
    name: str
    email: str
    active: bool


class UserPydantic(BaseModel):
    """User model using Pydantic"""
    id: int
    name: str
    email: str
    active: bool


@derive_from_row
@dataclass
class UserSummary:
    id: int
    name: str


def main():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            active INTEGER DEFAULT 1
        )
    """)
    conn.execute("INSERT INTO users (name, email) VALUES ('Alice', 'alice@example.com')")
    conn.execute("INSERT INTO users (name, email) VALUES ('Bob', 'bob@example.com')")

    print("=== Decoding Rows ===\n")

    print("1. Dataclass Mapping:")
    row = conn.execute("SELECT * FROM users WHERE id = 1").fetchone()
    user = FromRow(UserDataclass).map_one(row)
    print(f"   Type: {type(user).__name__}")
    print(f"   Data: {user}\n")

    print("2. Pydantic Model Mapping:")
    users = FromRow(UserPydantic).map_many(conn.execute("SELECT * FROM users"))
    for u in users:
        print(f"   - {u.name}: {u.email} (active={u.active})")
    print()

    print("3. Derived from_row:")
    print(f"   {UserSummary.from_row(row)}\n")

    print("4. Positional tuple:")
    plan = build_plan(tuple[int, str])
    for r in conn.execute("SELECT id, name FROM users"):
        print(f"   {execute(plan, r)}")

    conn.close()


if __name__ == "__main__":
    main()

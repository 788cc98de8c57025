import logging
import sqlite3
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from db import execute_db, query_db, utcnow
from errors import DuplicateUser
from schemas import RegisterRequest, parse

logger = logging.getLogger("microsocial.users")

# Checked when no account matches the email.
_DUMMY_HASH = generate_password_hash("microsocial-dummy-password")


def user_to_dict(row, include_secret=False):
    if row is None:
        return None
    user = {
        "id": row["id"],
        "username": row["username"],
        "email": row["email"],
        "avatar": row["avatar"],
        "bio": row["bio"],
        "createdAt": row["created_at"],
    }
    if include_secret:
        user["passwordHash"] = row["password_hash"]
    return user


def public_author(row, prefix=""):
    """Denormalized author summary embedded in posts, likes and comments."""
    return {
        "id": row[f"{prefix}id"],
        "username": row[f"{prefix}username"],
        "avatar": row[f"{prefix}avatar"],
    }


class UserStore:
    """Credential store: user records keyed by id, unique on username and email."""

    def __init__(self, conn):
        self.conn = conn

    def register(self, username: str, email: str, password: str) -> dict:
        req = parse(RegisterRequest, {"username": username, "email": email, "password": password})
        if query_db(
            self.conn,
            "SELECT id FROM users WHERE username = ? OR email = ?",
            (req.username, req.email),
            one=True,
        ):
            raise DuplicateUser()

        password_hash = generate_password_hash(req.password)
        try:
            user_id = execute_db(
                self.conn,
                "INSERT INTO users (username, email, password_hash, bio, created_at) VALUES (?, ?, ?, '', ?)",
                (req.username, req.email, password_hash, utcnow()),
            )
        except sqlite3.IntegrityError:
            # lost a race with a concurrent registration for the same username/email
            raise DuplicateUser() from None
        logger.info("Registered user %s", user_id)
        return self.find_by_id(user_id)

    def find_by_email(self, email: str, include_secret: bool = False) -> Optional[dict]:
        row = query_db(self.conn, "SELECT * FROM users WHERE email = ?", (email,), one=True)
        return user_to_dict(row, include_secret=include_secret)

    def find_by_id(self, user_id) -> Optional[dict]:
        row = query_db(self.conn, "SELECT * FROM users WHERE id = ?", (user_id,), one=True)
        return user_to_dict(row)

    def authenticate(self, email: str, password: str) -> Optional[dict]:
        """Return the public user for valid credentials, else None."""
        user = self.find_by_email(email, include_secret=True)
        if not verify_password(user, password):
            return None
        user.pop("passwordHash")
        return user

    def count_posts(self, user_id) -> int:
        return query_db(
            self.conn, "SELECT COUNT(*) AS c FROM posts WHERE user_id = ?", (user_id,), one=True
        )["c"]


def verify_password(user: Optional[dict], candidate: str) -> bool:
    if not user or "passwordHash" not in user:
        check_password_hash(_DUMMY_HASH, candidate or "")
        return False
    return check_password_hash(user["passwordHash"], candidate or "")

import logging
from typing import Optional

from db import execute_db, query_db, transaction, utcnow
from errors import NotFoundError, OwnershipError
from schemas import CommentCreate, PostCreate, PostUpdate, parse
from users import public_author

logger = logging.getLogger("microsocial.posts")

POST_SELECT = """
SELECT p.*, u.id AS author_id, u.username AS author_username, u.avatar AS author_avatar
FROM posts p JOIN users u ON u.id = p.user_id
"""

COMMENT_SELECT = """
SELECT c.id, c.content, c.created_at,
       u.id AS user_id, u.username AS user_username, u.avatar AS user_avatar
FROM comments c JOIN users u ON u.id = c.user_id
"""


def comment_to_dict(row):
    return {
        "id": row["id"],
        "user": public_author(row, prefix="user_"),
        "text": row["content"],
        "createdAt": row["created_at"],
    }


class PostStore:
    """
    Posts with their like sets and flat comment lists.

    Reads return fully populated post dicts; ``viewer_id`` only affects the
    ``likedByMe`` flag.
    """

    def __init__(self, conn):
        self.conn = conn

    # -----------------------
    # Serialization
    # -----------------------
    def post_to_dict(self, row, viewer_id=None):
        if row is None:
            return None
        post_id = row["id"]
        likers = query_db(
            self.conn,
            "SELECT u.id, u.username, u.avatar FROM likes l JOIN users u ON u.id = l.user_id "
            "WHERE l.post_id = ? ORDER BY l.id",
            (post_id,),
        )
        likes = [public_author(r) for r in likers]
        return {
            "id": post_id,
            "author": public_author(row, prefix="author_"),
            "content": row["content"],
            "image": row["image_path"],
            "likes": likes,
            "likesCount": len(likes),
            "likedByMe": viewer_id is not None and any(u["id"] == viewer_id for u in likes),
            "comments": self.list_comments(post_id),
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        }

    def _row(self, post_id):
        return query_db(self.conn, POST_SELECT + " WHERE p.id = ?", (post_id,), one=True)

    # -----------------------
    # Reads
    # -----------------------
    def find_by_id(self, post_id, viewer_id=None) -> Optional[dict]:
        return self.post_to_dict(self._row(post_id), viewer_id=viewer_id)

    def get(self, post_id, viewer_id=None) -> dict:
        post = self.find_by_id(post_id, viewer_id=viewer_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def list_page(self, author_id=None, page: int = 1, limit: int = 10, viewer_id=None):
        """
        One page of posts, newest first, optionally restricted to one author.

        Returns ``(posts, total)`` where ``total`` counts every matching post.
        """
        where, args = "", ()
        if author_id is not None:
            where, args = " WHERE p.user_id = ?", (author_id,)
        skip = (page - 1) * limit
        rows = query_db(
            self.conn,
            POST_SELECT + where + " ORDER BY p.created_at DESC, p.id DESC LIMIT ? OFFSET ?",
            args + (limit, skip),
        )
        total = query_db(
            self.conn, "SELECT COUNT(*) AS c FROM posts p" + where, args, one=True
        )["c"]
        return [self.post_to_dict(r, viewer_id=viewer_id) for r in rows], total

    # -----------------------
    # Writes
    # -----------------------
    def create(self, author_id, content: str, image: Optional[str] = None) -> dict:
        req = parse(PostCreate, {"content": content, "image": image})
        now = utcnow()
        post_id = execute_db(
            self.conn,
            "INSERT INTO posts (user_id, content, image_path, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
            (author_id, req.content, req.image, now, now),
        )
        logger.info("User %s created post %s", author_id, post_id)
        return self.find_by_id(post_id, viewer_id=author_id)

    def check_owner(self, post_id, requester_id):
        """Return the post row if it exists and belongs to ``requester_id``."""
        row = self._row(post_id)
        if row is None:
            raise NotFoundError("Post not found")
        if row["user_id"] != requester_id:
            raise OwnershipError("Not authorized to modify this post")
        return row

    def update(self, post_id, requester_id, patch: dict) -> dict:
        self.check_owner(post_id, requester_id)
        req = parse(PostUpdate, patch)
        changes = {"content": req.content, "image_path": req.image}
        changes = {k: v for k, v in changes.items() if v is not None}
        if changes:
            assignments = ", ".join(f"{column} = ?" for column in changes)
            execute_db(
                self.conn,
                f"UPDATE posts SET {assignments}, updated_at = ? WHERE id = ?",
                tuple(changes.values()) + (utcnow(), post_id),
            )
            logger.info("User %s updated post %s (%s)", requester_id, post_id, ", ".join(changes))
        return self.find_by_id(post_id, viewer_id=requester_id)

    def delete(self, post_id, requester_id):
        self.check_owner(post_id, requester_id)
        execute_db(self.conn, "DELETE FROM posts WHERE id = ?", (post_id,))
        logger.info("User %s deleted post %s", requester_id, post_id)

    # -----------------------
    # Comments
    # -----------------------
    def list_comments(self, post_id) -> list:
        rows = query_db(
            self.conn, COMMENT_SELECT + " WHERE c.post_id = ? ORDER BY c.created_at, c.id", (post_id,)
        )
        return [comment_to_dict(r) for r in rows]

    def add_comment(self, post_id, user_id, text: str) -> dict:
        req = parse(CommentCreate, {"text": text})
        with transaction(self.conn):
            if not query_db(self.conn, "SELECT 1 FROM posts WHERE id = ?", (post_id,), one=True):
                raise NotFoundError("Post not found")
            comment_id = execute_db(
                self.conn,
                "INSERT INTO comments (user_id, post_id, content, created_at) VALUES (?, ?, ?, ?)",
                (user_id, post_id, req.text, utcnow()),
            )
        row = query_db(self.conn, COMMENT_SELECT + " WHERE c.id = ?", (comment_id,), one=True)
        return comment_to_dict(row)

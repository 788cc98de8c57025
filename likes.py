import logging

from db import execute_db, query_db, transaction
from errors import NotFoundError

logger = logging.getLogger("microsocial.likes")


class LikeToggle:
    """
    Flips one user's membership in a post's like set.

    The read-modify-write runs inside a single write transaction and the
    ``likes`` table is unique on (user_id, post_id), so concurrent toggles
    by different users are all kept and a user is never counted twice.
    """

    def __init__(self, conn):
        self.conn = conn

    def toggle(self, post_id, user_id) -> dict:
        with transaction(self.conn):
            if not query_db(self.conn, "SELECT 1 FROM posts WHERE id = ?", (post_id,), one=True):
                raise NotFoundError("Post not found")
            existing = query_db(
                self.conn,
                "SELECT id FROM likes WHERE user_id = ? AND post_id = ?",
                (user_id, post_id),
                one=True,
            )
            if existing:
                execute_db(self.conn, "DELETE FROM likes WHERE id = ?", (existing["id"],))
                liked = False
            else:
                execute_db(
                    self.conn, "INSERT INTO likes (user_id, post_id) VALUES (?, ?)", (user_id, post_id)
                )
                liked = True
            count = query_db(
                self.conn, "SELECT COUNT(*) AS c FROM likes WHERE post_id = ?", (post_id,), one=True
            )["c"]
        logger.debug("User %s %s post %s", user_id, "liked" if liked else "unliked", post_id)
        return {"liked": liked, "likesCount": count}

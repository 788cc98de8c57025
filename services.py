"""
Service context shared by the request handlers.

``create_app`` builds one ServiceContext and registers it on the Flask app.
Stores are cheap objects bound to the current request's database
connection, which is opened lazily and closed on teardown.
"""

from flask import current_app, g

from feed import FeedService
from likes import LikeToggle
from posts import PostStore
from users import UserStore

EXTENSION_KEY = "microsocial"


class ServiceContext:
    def __init__(self, config, database, tokens, media):
        self.config = config
        self.database = database
        self.tokens = tokens
        self.media = media

    def init_app(self, app):
        app.extensions[EXTENSION_KEY] = self
        app.teardown_appcontext(close_db)

    def connection(self):
        if "db" not in g:
            g.db = self.database.connect()
        return g.db

    def users(self) -> UserStore:
        return UserStore(self.connection())

    def posts(self) -> PostStore:
        return PostStore(self.connection())

    def likes(self) -> LikeToggle:
        return LikeToggle(self.connection())

    def feed(self) -> FeedService:
        return FeedService(self.posts())


def services() -> ServiceContext:
    return current_app.extensions[EXTENSION_KEY]


def close_db(exc):
    db = g.pop("db", None)
    if db is not None:
        db.close()

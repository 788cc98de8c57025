# Routes for handling requests
import logging

from flask import Blueprint, g, jsonify, request, send_from_directory
from werkzeug.routing import IntegerConverter

from auth import jwt_required
from errors import AuthError, NotFoundError
from feed import page_args
from schemas import LoginRequest, PostCreate, PostUpdate, RegisterRequest, parse
from services import services

logger = logging.getLogger("microsocial.routes")

# Largest row id sqlite can store (signed 64-bit).
MAX_ROW_ID = 2**63 - 1


class IdConverter(IntegerConverter):
    """Row id in a URL; values sqlite cannot hold do not match the route."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_ROW_ID)
        super().__init__(map, *args, **kwargs)


# Create blueprints for different route categories
main_bp = Blueprint("main", __name__)
auth_bp = Blueprint("auth", __name__)
posts_bp = Blueprint("posts", __name__)
users_bp = Blueprint("users", __name__)


def respond(data=None, message=None, status=200):
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def post_fields():
    """Form fields and the optional image upload; JSON bodies carry no image."""
    if request.is_json:
        return json_body(), None
    image = request.files.get("image")
    if image is not None and not image.filename:
        image = None
    return request.form.to_dict(), image


# -----------------------
# Service endpoints
# -----------------------
@main_bp.route("/", methods=["GET"])
def index():
    return respond(message="MicroSocial API")


@main_bp.route("/health", methods=["GET"])
def health():
    connected = services().database.ping()
    return respond(
        data={"status": "OK", "database": "connected" if connected else "disconnected"},
        message="MicroSocial API is running",
    )


@main_bp.route("/uploads/<path:filename>", methods=["GET"])
def uploaded_file(filename):
    # send_from_directory refuses paths escaping the upload folder
    return send_from_directory(services().media.folder, filename, as_attachment=False)


# -----------------------
# Authentication Endpoints
# -----------------------
@auth_bp.route("/register", methods=["POST"])
def register():
    req = parse(RegisterRequest, json_body())
    ctx = services()
    user = ctx.users().register(req.username, req.email, req.password)
    token = ctx.tokens.issue(user["id"])
    return respond(data={"token": token, "user": user}, message="User registered successfully", status=201)


@auth_bp.route("/login", methods=["POST"])
def login():
    req = parse(LoginRequest, json_body())
    ctx = services()
    user = ctx.users().authenticate(req.email, req.password)
    if user is None:
        raise AuthError("Invalid credentials")
    logger.info("User %s logged in", user["id"])
    token = ctx.tokens.issue(user["id"])
    return respond(data={"token": token, "user": user}, message="Login successful")


@auth_bp.route("/me", methods=["GET"])
@jwt_required
def me():
    return respond(data={"user": g.current_user})


# -----------------------
# Posts
# -----------------------
@posts_bp.route("", methods=["POST"])
@jwt_required
def create_post():
    fields, image = post_fields()
    req = parse(PostCreate, {"content": fields.get("content")})
    ctx = services()
    image_path = ctx.media.store(image) if image else None
    post = ctx.posts().create(g.current_user["id"], req.content, image_path)
    return respond(data={"post": post}, message="Post created successfully", status=201)


@posts_bp.route("", methods=["GET"])
@jwt_required
def list_posts():
    page, limit = page_args(request.args)
    return respond(data=services().feed().page(page, limit, viewer_id=g.current_user["id"]))


@posts_bp.route("/<id:post_id>", methods=["GET"])
@jwt_required
def get_post(post_id):
    post = services().posts().get(post_id, viewer_id=g.current_user["id"])
    return respond(data={"post": post})


@posts_bp.route("/<id:post_id>", methods=["PUT"])
@jwt_required
def update_post(post_id):
    ctx = services()
    store = ctx.posts()
    user_id = g.current_user["id"]
    store.check_owner(post_id, user_id)

    fields, image = post_fields()
    patch = {}
    if "content" in fields:
        patch["content"] = fields["content"]
    parse(PostUpdate, patch)
    if image:
        patch["image"] = ctx.media.store(image)
    post = store.update(post_id, user_id, patch)
    return respond(data={"post": post}, message="Post updated successfully")


@posts_bp.route("/<id:post_id>", methods=["DELETE"])
@jwt_required
def delete_post(post_id):
    services().posts().delete(post_id, g.current_user["id"])
    return respond(data={}, message="Post deleted successfully")


@posts_bp.route("/<id:post_id>/like", methods=["POST"])
@jwt_required
def like_post(post_id):
    result = services().likes().toggle(post_id, g.current_user["id"])
    return respond(data=result, message="Post liked" if result["liked"] else "Post unliked")


@posts_bp.route("/<id:post_id>/comments", methods=["GET"])
@jwt_required
def list_comments(post_id):
    store = services().posts()
    store.get(post_id)
    return respond(data={"comments": store.list_comments(post_id)})


@posts_bp.route("/<id:post_id>/comments", methods=["POST"])
@jwt_required
def add_comment(post_id):
    text = json_body().get("text") if request.is_json else request.form.get("text")
    comment = services().posts().add_comment(post_id, g.current_user["id"], text)
    return respond(data={"comment": comment}, message="Comment added", status=201)


# -----------------------
# Users
# -----------------------
@users_bp.route("/<id:user_id>", methods=["GET"])
@jwt_required
def get_profile(user_id):
    users = services().users()
    user = users.find_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return respond(data={"user": user, "postCount": users.count_posts(user_id)})


@users_bp.route("/<id:user_id>/posts", methods=["GET"])
@jwt_required
def user_posts(user_id):
    page, limit = page_args(request.args)
    feed = services().feed().page(page, limit, author_id=user_id, viewer_id=g.current_user["id"])
    return respond(data=feed)

"""
Request payload schemas.

Each model mirrors one request body of the API and carries the field
constraints of the data model, so handlers and stores only ever see
input that already passed validation.
"""

import re
from typing import Annotated, Optional

import pydantic
from pydantic import BaseModel, Field, StringConstraints, field_validator

from errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

USERNAME_MIN, USERNAME_MAX = 3, 30
PASSWORD_MIN = 6
CONTENT_MAX = 1000
COMMENT_MAX = 500

Username = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=USERNAME_MIN, max_length=USERNAME_MAX)
]
Email = Annotated[str, StringConstraints(strip_whitespace=True, pattern=EMAIL_RE.pattern)]
PostContent = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=CONTENT_MAX)
]
CommentText = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=COMMENT_MAX)
]


class RegisterRequest(BaseModel):
    username: Username = Field(..., description="Unique handle")
    email: Email = Field(..., description="Unique email address")
    password: str = Field(..., min_length=PASSWORD_MIN, description="Plaintext, hashed before storage")


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=1)


class PostCreate(BaseModel):
    content: PostContent
    image: Optional[str] = Field(None, description="Relative path returned by the media store")


class PostUpdate(BaseModel):
    content: Optional[PostContent] = None
    image: Optional[str] = None

    @field_validator("image")
    @classmethod
    def check_image(cls, value):
        if value is not None and not value.startswith("/"):
            raise ValueError("image must be a relative upload path")
        return value


class CommentCreate(BaseModel):
    text: CommentText


_MESSAGES = {
    "email": "Please provide a valid email",
    "username": f"Username must be between {USERNAME_MIN} and {USERNAME_MAX} characters",
    "password": f"Password must be at least {PASSWORD_MIN} characters",
    "content": f"Post content must be between 1 and {CONTENT_MAX} characters",
    "text": f"Comment must be between 1 and {COMMENT_MAX} characters",
}


def _describe(error: dict) -> dict:
    loc = ".".join(str(part) for part in error.get("loc", ())) or "body"
    if error.get("type") == "missing":
        message = f"{loc} is required"
    else:
        message = _MESSAGES.get(loc) or error.get("msg", "Invalid value")
    return {"field": loc, "message": message}


def parse(model, data):
    """Validate ``data`` against ``model``, raising the API ValidationError."""
    try:
        return model.model_validate(data or {})
    except pydantic.ValidationError as exc:
        raise ValidationError(errors=[_describe(e) for e in exc.errors()]) from None

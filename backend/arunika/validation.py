"""Input checks shared by the routers.

Each helper raises `ValidationError` with the message clients see, so
they can be called from any pipeline stage.
"""

from typing import Any, Dict, Iterable, Optional, Sequence, Type

import pydantic

from .errors import ValidationError
from .pipeline import Proceed, Stage

TRAITS = ["analysis", "innovation", "collab", "creative"]
ROLE_CATEGORIES = ["Backend Developer", "UI/UX Designer", "Frontend Developer", "Product Manager"]
COURSE_LEVELS = ["beginner", "intermediate", "advanced"]
PASSWORD_MIN_LENGTH = 6

INVALID_BODY = "Invalid request body"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _join_names(names: Sequence[str]) -> str:
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return ", ".join(names[:-1]) + f", and {names[-1]}"


def describe_errors(errors: Iterable[dict]) -> str:
    """`field: reason` pairs for pydantic / FastAPI validation errors."""
    fields = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append(f"{'.'.join(loc) or 'body'}: {err.get('msg')}")
    return "; ".join(fields)


def body(schema: Type[pydantic.BaseModel], bind: str = "payload") -> Stage:
    """Stage: parse the raw JSON body into `schema` and bind it as `bind`.

    An empty body parses as an empty object.
    """
    def parse(ctx):
        raw = ctx.body or b""
        try:
            payload = schema.model_validate_json(raw) if raw.strip() else schema()
        except pydantic.ValidationError as exc:
            raise ValidationError(INVALID_BODY, describe_errors(exc.errors()))
        return Proceed(payload, bind=bind)
    return parse


def record_id(name: str, value: Any) -> int:
    """Integer primary key taken from a path segment."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value))
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def require_fields(values: Dict[str, Any], names: Sequence[str], message: Optional[str] = None) -> None:
    """All of `names` must be present and non-blank.

    The default message lists every required field, e.g.
    `"title, company, and role_category are required"`.
    """
    if any(_blank(values.get(name)) for name in names):
        verb = "is" if len(names) == 1 else "are"
        raise ValidationError(message or f"{_join_names(list(names))} {verb} required")


def one_of(name: str, value: Any, choices: Iterable[str]) -> None:
    """`value` (when supplied and not blank) must be one of `choices`."""
    choices = list(choices)
    if not _blank(value) and value not in choices:
        raise ValidationError(f"{name} must be one of: {', '.join(choices)}")


def password_strength(password: Optional[str]) -> None:
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")


def changes(values: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """The subset of `values` that may be written, dropping unset and blank entries.

    Raises when nothing is left to update.
    """
    picked = {name: values[name] for name in allowed if not _blank(values.get(name))}
    if not picked:
        raise ValidationError("No fields to update")
    return picked

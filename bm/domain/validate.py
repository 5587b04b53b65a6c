import math
from typing import Any, Dict, Sequence, Tuple

from ..core.constants import LAT_MIN, LAT_MAX, LNG_MIN, LNG_MAX, UPDATABLE_FIELDS
from ..core.errors import ValidationError


def validate_position(position: Any) -> Tuple[float, float]:
    """
    Returns (lat, lng) as floats, or raises ValidationError.
    Accepts any 2-element sequence of finite numbers within bounds.
    """
    if isinstance(position, (str, bytes)) or not isinstance(position, Sequence) or len(position) != 2:
        raise ValidationError("position must be a [lat, lng] pair")

    lat, lng = position
    for name, v in (("lat", lat), ("lng", lng)):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValidationError(f"{name} must be a number")
        if not math.isfinite(v):
            raise ValidationError(f"{name} must be finite")

    lat, lng = float(lat), float(lng)
    if not (LAT_MIN <= lat <= LAT_MAX):
        raise ValidationError(f"lat out of range: {lat}")
    if not (LNG_MIN <= lng <= LNG_MAX):
        raise ValidationError(f"lng out of range: {lng}")
    return lat, lng


def validate_location(location: Any) -> str:
    if not isinstance(location, str) or not location.strip():
        raise ValidationError("location must not be empty")
    return location


def validate_comments(comments: Any) -> Tuple[str, ...]:
    if isinstance(comments, (str, bytes)) or not isinstance(comments, Sequence):
        raise ValidationError("comments must be a list of strings")
    if not all(isinstance(c, str) for c in comments):
        raise ValidationError("comments must be a list of strings")
    return tuple(comments)


def validate_comment_append(existing: Sequence[str], new: Sequence[str]) -> Tuple[str, ...]:
    """Comments are append-only: the existing list must be a prefix of the new one."""
    new = validate_comments(new)
    if len(new) < len(existing) or tuple(new[:len(existing)]) != tuple(existing):
        raise ValidationError("comments are append-only")
    return new


def validate_update_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a client-side partial update for a confirmed marker.
    - position is rejected (confirmed markers are not repositioned)
    - unknown fields are rejected
    - location, when present, must not be blank
    """
    if "position" in fields:
        raise ValidationError("position of a confirmed marker cannot be changed")

    unknown = [k for k in fields if k not in UPDATABLE_FIELDS]
    if unknown:
        raise ValidationError(f"unknown fields: {', '.join(sorted(unknown))}")

    out = dict(fields)
    if "location" in out:
        validate_location(out["location"])
    if "problem" in out:
        if not isinstance(out["problem"], bool):
            raise ValidationError("problem must be true or false")
    if "comments" in out:
        out["comments"] = validate_comments(out["comments"])
    for key in ("photo", "status"):
        if key in out and out[key] is not None and not isinstance(out[key], str):
            raise ValidationError(f"{key} must be a string")
    return out

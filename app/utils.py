import warnings
from datetime import datetime

from flask_restx import abort

DATE_FORMATS = ["%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M",
                "%Y-%m-%d", "%d/%m/%Y"]


def parse_date(value, warn_future=False):
    """
    Accepts a datetime, an ISO-like string or a day/month/year string.
    Returns None when nothing matches.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        return value

    text = str(value).strip()
    # fractional seconds and the utc marker are dropped, timestamps are naive local time
    if "." in text and "T" in text:
        text = text.split(".")[0]
    if text.endswith("Z"):
        text = text[:-1]

    for fmt in DATE_FORMATS:
        try:
            dt = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if warn_future and dt > datetime.now():
            warnings.warn(f"Future date detected: {value}", UserWarning)
        return dt

    return None


def parse_enum(enum_cls, value):
    """Returns the stored string for `value`, or None if it is not a member."""
    if isinstance(value, enum_cls):
        return value.value
    for member in enum_cls:
        if value == member.value or (isinstance(value, str) and value.upper() == member.name):
            return member.value
    return None


def date_field(data, key, default=None, warn_future=False):
    value = data.get(key)
    if value in (None, ''):
        return default
    dt = parse_date(value, warn_future=warn_future)
    if dt is None:
        abort(400, f"Invalid date for '{key}': {value}")
    return dt


def enum_field(enum_cls, data, key, default=None):
    value = data.get(key)
    if value in (None, ''):
        return default
    parsed = parse_enum(enum_cls, value)
    if parsed is None:
        abort(400, f"Invalid {key} '{value}'. Expected one of: {', '.join(e.value for e in enum_cls)}")
    return parsed


def int_field(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    # json true/false would pass as 1/0
    if isinstance(value, bool) or not isinstance(value, int):
        abort(400, f"Invalid {key} '{value}'. Expected a whole number")
    return value


def bool_field(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        abort(400, f"Invalid {key} '{value}'. Expected true or false")
    return value


def split_tags(tags):
    if not tags or not tags.strip():
        return []
    return [t.strip() for t in tags.split(',') if t.strip()]


def contains(value, search):
    return value is not None and search in value.lower()

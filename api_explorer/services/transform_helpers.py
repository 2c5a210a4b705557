"""
Transformation helpers exposed to virtual endpoint code as ``context.utils``.

Every helper is pure and synchronous. Helpers never raise on a missing or
malformed primary argument: ``None`` or a value of the wrong type yields an
empty or neutral result (``{}``, ``[]``, ``""``, ``0`` or ``False``) so that
untrusted code cannot crash the host through them.
"""

import base64
import builtins
import json
import math
import re
import unicodedata
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import SimpleNamespace
from typing import Any, Callable, Iterable
from urllib.parse import parse_qsl, urlencode, urlparse

from .path_params import substitute_path_params


__all__ = [
    # Objects
    "merge", "pick", "omit", "map_keys", "map_values", "rename_keys",
    "filter_object", "deep_merge", "get", "set",
    # Arrays
    "group_by", "sort_by", "uniq_by", "flatten", "chunk", "partition",
    # Strings
    "camel_case", "snake_case", "kebab_case", "capitalize", "slugify", "truncate",
    # Dates
    "format_date", "add_days", "diff_days", "is_today", "is_after",
    # Validation
    "is_email", "is_url", "is_empty", "is_numeric",
    # Encoding
    "json_parse", "json_stringify", "base64_encode", "base64_decode", "hash_string",
    # HTTP
    "build_url", "parse_query", "build_query",
    # Math
    "sum", "avg", "min", "max", "round",
]

_MISSING = object()

_WORD_PATTERN = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]|\b|[^a-zA-Z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DATE_TOKEN_PATTERN = re.compile(r"YYYY|MMM|MM|DD|HH|mm|ss")
_MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _split_path(path: Any) -> list:
    if path is None:
        return []
    if isinstance(path, str):
        return [segment for segment in path.split(".") if segment != ""]
    if _is_list(path):
        return list(path)
    return [path]


def _resolve(item: Any, key: Any) -> Any:
    """Resolve a sort/group/aggregate key: None, a callable or a key path."""
    if key is None:
        return item
    if callable(key):
        return key(item)
    return get(item, key)


def _hashable(value: Any) -> Any:
    try:
        hash(value)
        return value
    except TypeError:
        return repr(value)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------

def merge(*objects: Any) -> dict:
    """Shallow merge of mappings, later ones winning. Non-mappings are skipped."""
    result: dict = {}
    for obj in objects:
        if isinstance(obj, Mapping):
            result.update(obj)
    return result


def pick(obj: Any, keys: Iterable[str] | None) -> dict:
    """Return a new dict with only ``keys`` (missing keys are ignored)."""
    if not isinstance(obj, Mapping) or not keys:
        return {}
    if isinstance(keys, str):
        keys = [keys]
    return {key: obj[key] for key in keys if key in obj}


def omit(obj: Any, keys: Iterable[str] | None) -> dict:
    """Return a new dict without ``keys``."""
    if not isinstance(obj, Mapping):
        return {}
    if isinstance(keys, str):
        keys = [keys]
    excluded = builtins.set(keys or [])
    return {key: value for key, value in obj.items() if key not in excluded}


def map_keys(obj: Any, fn: Callable[[Any], Any] | None) -> dict:
    if not isinstance(obj, Mapping):
        return {}
    if not callable(fn):
        return dict(obj)
    return {fn(key): value for key, value in obj.items()}


def map_values(obj: Any, fn: Callable[[Any], Any] | None) -> dict:
    if not isinstance(obj, Mapping):
        return {}
    if not callable(fn):
        return dict(obj)
    return {key: fn(value) for key, value in obj.items()}


def rename_keys(obj: Any, mapping: Mapping | None) -> dict:
    """Rename keys according to ``mapping`` (old name -> new name)."""
    if not isinstance(obj, Mapping):
        return {}
    mapping = mapping if isinstance(mapping, Mapping) else {}
    return {mapping.get(key, key): value for key, value in obj.items()}


def filter_object(obj: Any, predicate: Callable[[Any, Any], bool] | None) -> dict:
    """Keep the entries for which ``predicate(key, value)`` is truthy."""
    if not isinstance(obj, Mapping):
        return {}
    if not callable(predicate):
        return dict(obj)
    return {key: value for key, value in obj.items() if predicate(key, value)}


def deep_merge(*objects: Any) -> dict:
    """
    Recursively merge mappings into a new dict.

    Nested mappings are merged key by key; any other value (lists included)
    from a later object replaces the earlier one.
    """
    result: dict = {}
    for obj in objects:
        if not isinstance(obj, Mapping):
            continue
        for key, value in obj.items():
            if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
                result[key] = deep_merge(result[key], value)
            elif isinstance(value, Mapping):
                result[key] = deep_merge(value)
            else:
                result[key] = value
    return result


def get(obj: Any, path: Any, default: Any = None) -> Any:
    """
    Read a nested value by dot path (``"a.b.0.c"``) or segment sequence.

    Integer-like segments index into lists. Returns ``default`` when any
    segment is missing.
    """
    segments = _split_path(path)
    if obj is None or not segments:
        return default

    current = obj
    for segment in segments:
        if isinstance(current, Mapping):
            if segment in current:
                current = current[segment]
            elif str(segment) in current:
                current = current[str(segment)]
            else:
                return default
        elif _is_list(current):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError, TypeError):
                return default
        else:
            return default
    return current


def set(obj: Any, path: Any, value: Any) -> Any:
    """
    Write a nested value in place, creating intermediate dicts as needed.

    Returns the same object that was passed in (``{}`` when ``obj`` is None).
    """
    if obj is None:
        return {}
    segments = _split_path(path)
    if not segments or not isinstance(obj, (dict, list)):
        return obj

    current = obj
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if isinstance(current, list):
            try:
                position = int(segment)
                if last:
                    current[position] = value
                    break
                if not isinstance(current[position], (dict, list)):
                    current[position] = {}
                current = current[position]
            except (ValueError, IndexError):
                break
            continue
        if last:
            current[segment] = value
        else:
            if not isinstance(current.get(segment), (dict, list)):
                current[segment] = {}
            current = current[segment]
    return obj


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------

def group_by(items: Any, key: Any) -> dict:
    """Group items by a key path or key function."""
    if not _is_list(items):
        return {}
    groups: dict = {}
    for item in items:
        group_key = _hashable(_resolve(item, key))
        groups.setdefault(group_key, []).append(item)
    return groups


def sort_by(items: Any, key: Any = None, order: str = "asc") -> list:
    """
    Return a new list sorted by a key path or key function.

    ``None`` values always sort last. ``order`` is ``"asc"`` or ``"desc"``.
    """
    if not _is_list(items):
        return []
    descending = str(order).lower() == "desc"
    present = [item for item in items if _resolve(item, key) is not None]
    missing = [item for item in items if _resolve(item, key) is None]
    try:
        ordered = sorted(present, key=lambda item: _resolve(item, key), reverse=descending)
    except TypeError:
        ordered = sorted(present, key=lambda item: str(_resolve(item, key)), reverse=descending)
    return ordered + missing


def uniq_by(items: Any, key: Any = None) -> list:
    """Drop items whose key was already seen, keeping the first occurrence."""
    if not _is_list(items):
        return []
    seen = builtins.set()
    result = []
    for item in items:
        marker = _hashable(_resolve(item, key))
        if marker in seen:
            continue
        seen.add(marker)
        result.append(item)
    return result


def flatten(items: Any, depth: int | None = 1) -> list:
    """Flatten nested lists ``depth`` levels deep (fully when depth is None)."""
    if not _is_list(items):
        return []
    result = []
    for item in items:
        if _is_list(item) and (depth is None or depth > 0):
            result.extend(flatten(item, None if depth is None else depth - 1))
        else:
            result.append(item)
    return result


def chunk(items: Any, size: int = 1) -> list:
    if not _is_list(items) or not isinstance(size, int) or size <= 0:
        return []
    items = list(items)
    return [items[i:i + size] for i in range(0, len(items), size)]


def partition(items: Any, predicate: Callable[[Any], bool] | None) -> list:
    """Split items into ``[matching, rest]``."""
    if not _is_list(items):
        return [[], []]
    if not callable(predicate):
        return [list(items), []]
    matching, rest = [], []
    for item in items:
        (matching if predicate(item) else rest).append(item)
    return [matching, rest]


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

def _words(value: Any) -> list[str]:
    return _WORD_PATTERN.findall(_to_text(value))


def camel_case(value: Any) -> str:
    words = [word.lower() for word in _words(value)]
    if not words:
        return ""
    return words[0] + "".join(word[:1].upper() + word[1:] for word in words[1:])


def snake_case(value: Any) -> str:
    return "_".join(word.lower() for word in _words(value))


def kebab_case(value: Any) -> str:
    return "-".join(word.lower() for word in _words(value))


def capitalize(value: Any) -> str:
    text = _to_text(value)
    return text[:1].upper() + text[1:].lower()


def slugify(value: Any) -> str:
    text = unicodedata.normalize("NFKD", _to_text(value))
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def truncate(value: Any, length: int = 30, suffix: str = "...") -> str:
    text = _to_text(value)
    if length is None or len(text) <= length:
        return text
    if length <= len(suffix):
        return suffix[:builtins.max(length, 0)]
    return text[:length - len(suffix)] + suffix


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def _to_datetime(value: Any) -> datetime | None:
    """Coerce datetimes, dates, ISO strings and epoch milliseconds to aware UTC."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def format_date(value: Any, fmt: str = "YYYY-MM-DD") -> str:
    """
    Format a date with the tokens YYYY, MMM, MM, DD, HH, mm and ss.

    Example:
        >>> format_date("2024-03-05T14:07:09Z", "MMM DD, YYYY HH:mm")
        'Mar 05, 2024 14:07'
    """
    moment = _to_datetime(value)
    if moment is None:
        return ""
    tokens = {
        "YYYY": f"{moment.year:04d}",
        "MMM": _MONTH_ABBR[moment.month - 1],
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
        "HH": f"{moment.hour:02d}",
        "mm": f"{moment.minute:02d}",
        "ss": f"{moment.second:02d}",
    }
    return _DATE_TOKEN_PATTERN.sub(lambda match: tokens[match.group(0)], _to_text(fmt))


def add_days(value: Any, days: int | float = 0) -> str:
    """Return the ISO-8601 timestamp ``days`` days after ``value``."""
    moment = _to_datetime(value)
    if moment is None or not is_numeric(days):
        return ""
    return (moment + timedelta(days=float(days))).isoformat()


def diff_days(start: Any, end: Any) -> int:
    """Whole days from ``start`` to ``end`` (negative when end is earlier)."""
    first, second = _to_datetime(start), _to_datetime(end)
    if first is None or second is None:
        return 0
    return int((second - first).total_seconds() / 86400)


def is_today(value: Any) -> bool:
    moment = _to_datetime(value)
    if moment is None:
        return False
    return moment.astimezone(timezone.utc).date() == datetime.now(timezone.utc).date()


def is_after(value: Any, other: Any) -> bool:
    first, second = _to_datetime(value), _to_datetime(other)
    if first is None or second is None:
        return False
    return first > second


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def is_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL_PATTERN.match(value))


def is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_empty(value: Any) -> bool:
    """True for None, blank strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (Mapping, list, tuple, builtins.set, frozenset)):
        return len(value) == 0
    return False


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
    return False


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def json_parse(text: Any, default: Any = _MISSING) -> Any:
    """Parse JSON, returning ``default`` (``{}`` when omitted) on failure."""
    fallback = {} if default is _MISSING else default
    if not isinstance(text, (str, bytes, bytearray)):
        return fallback
    try:
        return json.loads(text)
    except (ValueError, TypeError):
        return fallback


def json_stringify(value: Any, indent: int | None = None) -> str:
    """Serialize to JSON, returning ``""`` for None or unserializable values."""
    if value is None:
        return ""
    try:
        return json.dumps(value, indent=indent, ensure_ascii=False)
    except (TypeError, ValueError):
        return ""


def base64_encode(value: Any) -> str:
    if value is None:
        return ""
    data = value if isinstance(value, (bytes, bytearray)) else _to_text(value).encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def base64_decode(value: Any) -> str:
    if not isinstance(value, (str, bytes, bytearray)):
        return ""
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return ""


def hash_string(value: Any) -> str:
    """
    Non-cryptographic 32-bit hash rendered in base 36, for cache keys.

    Example:
        >>> hash_string("hello") == hash_string("hello")
        True
    """
    text = _to_text(value)
    if not text:
        return ""
    result = 5381
    for char in text:
        result = ((result << 5) + result + ord(char)) & 0xFFFFFFFF
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    encoded = ""
    while result:
        result, remainder = divmod(result, 36)
        encoded = digits[remainder] + encoded
    return encoded or "0"


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def build_query(params: Any) -> str:
    """Build a query string from a mapping, skipping None values."""
    if not isinstance(params, Mapping):
        return ""
    return urlencode([(key, value) for key, value in params.items() if value is not None], doseq=True)


def parse_query(query: Any) -> dict:
    """Parse a query string (leading ``?`` allowed). Repeated keys keep the last value."""
    if not isinstance(query, str):
        return {}
    return dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))


def build_url(template: Any, params: Mapping | None = None, query: Mapping | None = None) -> str:
    """
    Substitute :param tokens and append a query string.

    Example:
        >>> build_url("/users/:id", {"id": 7}, {"expand": "posts"})
        '/users/7?expand=posts'
    """
    url = substitute_path_params(_to_text(template), params if isinstance(params, Mapping) else None)
    query_string = build_query(query)
    if query_string:
        url += ("&" if "?" in url else "?") + query_string
    return url


# ---------------------------------------------------------------------------
# Math
# ---------------------------------------------------------------------------

def _numbers(items: Any, key: Any) -> list:
    if not _is_list(items):
        return []
    values = []
    for item in items:
        value = _resolve(item, key)
        if is_numeric(value):
            values.append(float(value) if isinstance(value, str) else value)
    return values


def sum(items: Any, key: Any = None) -> float:
    """Sum numeric values (optionally by key path or key function)."""
    return builtins.sum(_numbers(items, key))


def avg(items: Any, key: Any = None) -> float:
    values = _numbers(items, key)
    if not values:
        return 0
    return builtins.sum(values) / len(values)


def min(items: Any, key: Any = None) -> float:
    values = _numbers(items, key)
    return builtins.min(values) if values else 0


def max(items: Any, key: Any = None) -> float:
    values = _numbers(items, key)
    return builtins.max(values) if values else 0


def round(value: Any, decimals: int = 0) -> float:
    """Round half away from zero (``round(2.5) == 3``)."""
    if not is_numeric(value):
        return 0
    try:
        quantum = Decimal(1).scaleb(-int(decimals))
        result = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return 0
    return int(result) if int(decimals) <= 0 else float(result)


def as_namespace() -> SimpleNamespace:
    """Bundle the public helpers into an attribute-access namespace."""
    return SimpleNamespace(**{name: globals()[name] for name in __all__})


utils = as_namespace()

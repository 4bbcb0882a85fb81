import re
from datetime import datetime, timezone
from typing import Optional

_VERSION_PATTERN = re.compile(r"^\s*v?(\d+)(?:\.\d+){0,2}(?:[-+][0-9A-Za-z.\-+]*)?\s*$")

def parse_major_version(version_string: str) -> Optional[int]:
    match = _VERSION_PATTERN.match(version_string)
    if not match:
        return None
    return int(match.group(1))

def is_yarn_classic_version(version_string: str) -> Optional[bool]:
    """Vero per yarn 0.x / 1.x, None se la versione non è leggibile."""
    major = parse_major_version(version_string)
    if major is None:
        return None
    return major in (0, 1)

def format_timestamp(moment: datetime) -> str:
    """Formato ISO 8601 in UTC con millisecondi, es. 2023-02-01T00:00:00.000Z"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"

def parse_timestamp(value: str) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

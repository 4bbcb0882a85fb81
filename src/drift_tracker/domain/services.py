import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .entities import RepositoryEntry, Summary

_SCHEME_PATTERN = re.compile(r"^https?://")
_UNSAFE_CHARS_PATTERN = re.compile(r"[-/.:#]")
_URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
GITHUB_HOSTS = ("github.com", "www.github.com")

_BUMP_QUERY_TEMPLATE = (
    "\n"
    "    query {{\n"
    '      search(first: 100, query: "repo:{repository} is:pr is:merged '
    'merged:{day}..{day} in:title [BUMP] {path_search}", type: ISSUE) {{\n'
    "        nodes {{\n"
    "          ... on PullRequest {{\n"
    "            title\n"
    "          }}\n"
    "        }}\n"
    "      }}\n"
    "    }}"
)

def parse_repository_line(line: str) -> RepositoryEntry:
    repository, _separator, path = line.partition("#")
    return RepositoryEntry(repository=repository, path=path)

def parse_file(content: str) -> List[RepositoryEntry]:
    entries = []
    for raw_line in content.split("\n"):
        line = raw_line.rstrip("\r")
        stripped = line.strip()
        if stripped == "" or stripped.startswith("#"):
            continue
        entries.append(parse_repository_line(line))
    return entries

def replace_repository_variables(repository: str, variables: Mapping[str, str]) -> str:
    """
    Sostituisce ogni `$NOME` presente nella mappa con il relativo valore.
    Le chiavi assenti restano letterali; i valori inseriti non vengono
    sostituiti a loro volta.
    """
    keys = sorted((key for key in variables if key), key=len, reverse=True)
    if not keys:
        return repository

    pattern = re.compile(r"\$(" + "|".join(re.escape(key) for key in keys) + ")")
    return pattern.sub(lambda match: str(variables[match.group(1)]), repository)

def replace_repository_with_safe_chars(line: str) -> str:
    return _UNSAFE_CHARS_PATTERN.sub("-", _SCHEME_PATTERN.sub("", line, count=1))

def get_safe_repository_name(repository: str, path: str) -> str:
    return replace_repository_with_safe_chars(RepositoryEntry(repository, path).line)

def _metric_value(record: Dict[str, Any], key: str) -> float:
    value = record.get(key) if isinstance(record, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value

def create_summary(records: Iterable[Dict[str, Any]], now: Optional[datetime] = None) -> Summary:
    drift, pulse = 0, 0
    for record in records:
        drift += _metric_value(record, "drift")
        pulse += _metric_value(record, "pulse")
    return Summary(drift=drift, pulse=pulse, date=now or datetime.now(timezone.utc))

def get_yesterday(today: Optional[date] = None) -> date:
    today = today or datetime.now(timezone.utc).date()
    return today - timedelta(days=1)

def get_query_for_merged_bump_pull_requests(repository: str, path: str, today: Optional[date] = None) -> str:
    """
    Query GraphQL di ricerca delle PR `[BUMP]` mergiate ieri sul repository
    `owner/name`. Con path vuoto il termine tra parentesi viene omesso,
    lasciando lo spazio finale prima delle virgolette.
    """
    day = get_yesterday(today).strftime("%Y-%m-%d")
    path_search = f"({path})" if path else ""
    return _BUMP_QUERY_TEMPLATE.format(repository=repository, day=day, path_search=path_search)

def get_github_repository_name(repository_url: str) -> Optional[str]:
    """
    Ricava `owner/name` dall'URL di clone di un repository GitHub, es.
    https://github.com/1024pix/pix.git -> 1024pix/pix
    git@github.com:1024pix/pix.git    -> 1024pix/pix
    """
    url = repository_url.strip()
    if _URL_SCHEME_PATTERN.match(url):
        authority, separator, location = _URL_SCHEME_PATTERN.sub("", url, count=1).partition("/")
        if not separator:
            return None
        host = authority.rsplit("@", 1)[-1].split(":", 1)[0]
    elif ":" in url.split("/", 1)[0]:
        authority, location = url.split(":", 1)
        host = authority.rsplit("@", 1)[-1]
    else:
        return None

    # Solo i repository ospitati su GitHub hanno PR interrogabili.
    if host.lower() not in GITHUB_HOSTS:
        return None

    parts = [part for part in location.split("/") if part]
    if len(parts) < 2:
        return None

    owner, name = parts[0], parts[1]
    if name.endswith(".git"):
        name = name[:-4]
    return f"{owner}/{name}" if name else None

import os
import re
from typing import Optional

from .errors import MalformedURIError

URI_ENV_VAR = 'MONGODB_URI'
DEBUG_ENV_VAR = 'MONGOURI_DEBUG'
DEFAULT_SCHEME = 'mongodb://'
REDACTED = '****'

_BAD_ESCAPE_RE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def check_percent_encoding(text: str, section: str):
    """Every '%' must introduce a two digit hex escape."""
    match = _BAD_ESCAPE_RE.search(text)
    if match:
        raise MalformedURIError(f'Unescaped percent sign at position {match.start()} of the {section} section.')


def redact_uri(uri: str) -> str:
    """Masks the password of a connection string without fully parsing it."""
    if not uri or '://' not in uri:
        return uri
    scheme, _, rest = uri.partition('://')
    end = len(rest)
    for delim in '/?':
        idx = rest.find(delim)
        if idx != -1:
            end = min(end, idx)
    authority, tail = rest[:end], rest[end:]
    userinfo, sep, hosts = authority.rpartition('@')
    if not sep or ':' not in userinfo:
        return uri
    user = userinfo.split(':', 1)[0]
    return f'{scheme}://{user}:{REDACTED}@{hosts}{tail}'


def normalize_target(target: str) -> str:
    if not target:
        return target
    if '://' in target:
        return target
    return DEFAULT_SCHEME + target


def get_uri_from_env() -> Optional[str]:
    return os.environ.get(URI_ENV_VAR)


def debug_enabled() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, '').lower() in ('1', 'true', 'yes', 'on')

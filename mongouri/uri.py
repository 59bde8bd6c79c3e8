import dataclasses
import logging
import re
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, NamedTuple, Optional

from .auth import Credentials, parse_userinfo, resolve_credentials
from .errors import InvalidHostListError, InvalidOptionValueError, InvalidPortError, MalformedURIError, ParseError
from .hosts import DEFAULT_PORT, Host, split_hosts
from .hosts import to_ascii as default_to_ascii
from .normalizer import GSSAPI_PROPERTIES, OptionValue, get_option, normalize_options
from .query import collect_query_params
from .utils import REDACTED, redact_uri

logger = logging.getLogger(__name__)

SCHEME = 'mongodb'
SRV_SCHEME = 'mongodb+srv'
SCHEMES = (SCHEME, SRV_SCHEME)
EXTERNAL_DATABASE = '$external'

# Prohibited characters in database name
_BAD_DB_CHARS = re.compile('[' + re.escape('/ "$') + ']')


@dataclass
class ParseOptions:
    case_translate: bool = True
    default_port: int = DEFAULT_PORT
    to_ascii: Callable[[str], str] = default_to_ascii


class URIParts(NamedTuple):
    scheme: str
    userinfo: Optional[str]
    hosts: str
    database: Optional[str]
    query: str


@dataclass
class ParsedConnectionString:
    hosts: List[Host]
    credentials: Optional[Credentials] = None
    database: Optional[str] = None
    options: Dict[str, OptionValue] = field(default_factory=dict)
    scheme: str = SCHEME

    @property
    def srv(self) -> bool:
        return self.scheme == SRV_SCHEME

    @property
    def connection_string(self) -> str:
        return self.to_uri(redact=True)

    def to_uri(self, redact: bool = False) -> str:
        """Canonical form of this configuration. Parsing it again gives an equal result."""
        auth = ''
        if self.credentials and self.credentials.username is not None:
            auth = urllib.parse.quote(self.credentials.username, safe='')
            if self.credentials.password is not None:
                auth += ':' + (REDACTED if redact else urllib.parse.quote(self.credentials.password, safe=''))
            auth += '@'
        hosts = ','.join(_format_host(host) for host in self.hosts)
        path = '/' + urllib.parse.quote(self.database, safe='') if self.database else ''
        query = '&'.join(_serialize_options(self.options))
        if query:
            return f'{self.scheme}://{auth}{hosts}{path or "/"}?{query}'
        return f'{self.scheme}://{auth}{hosts}{path}'


class ParseResult(NamedTuple):
    value: Optional[ParsedConnectionString]
    error: Optional[ParseError]

    @property
    def ok(self) -> bool:
        return self.error is None


def _format_host(host: Host) -> str:
    if host.is_unix_socket:
        return urllib.parse.quote(host.path, safe='')
    if ':' in host.host:
        name = '[' + urllib.parse.quote(host.host, safe=':') + ']'
    else:
        name = urllib.parse.quote(host.host, safe='')
    if host.port is None:
        return name
    return f'{name}:{host.port}'


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, dict):
        return ','.join(f'{urllib.parse.quote(str(k), safe="")}:{urllib.parse.quote(_format_value(v), safe="")}' for k, v in value.items())
    return urllib.parse.quote(str(value), safe=':,')


def _serialize_options(options: Dict[str, OptionValue]) -> Iterator[str]:
    props = get_option(options, 'authMechanismProperties') or {}
    flattened = {option for name, option in GSSAPI_PROPERTIES.items() if name in props}
    for key, value in options.items():
        name = urllib.parse.quote(key, safe='')
        if key == 'compression' and isinstance(value, dict):
            if 'compressors' in value:
                yield 'compressors=' + ','.join(value['compressors'])
            if 'zlibCompressionLevel' in value:
                yield f"zlibCompressionLevel={value['zlibCompressionLevel']}"
        elif key == 'readConcern' and isinstance(value, dict):
            continue
        elif key in flattened:
            continue
        elif isinstance(value, list):
            for item in value:
                yield f'{name}={_format_value(item)}'
        else:
            yield f'{name}={_format_value(value)}'


def split_uri(uri: str) -> URIParts:
    scheme, sep, rest = uri.partition('://')
    if not sep or scheme not in SCHEMES:
        raise MalformedURIError(f"Invalid URI scheme: URI must begin with '{SCHEME}://' or '{SRV_SCHEME}://'")
    end = len(rest)
    for delim in '/?':
        idx = rest.find(delim)
        if idx != -1:
            end = min(end, idx)
    authority, tail = rest[:end], rest[end:]
    userinfo, at, hosts = authority.rpartition('@')
    if not hosts:
        raise MalformedURIError('Must provide at least one hostname or IP.')
    database = None
    query = ''
    if tail.startswith('/'):
        path, _, query = tail[1:].partition('?')
        database = path or None
    elif tail.startswith('?'):
        query = tail[1:]
    return URIParts(scheme, userinfo if at else None, hosts, database, query)


def parse_database(path: str) -> str:
    if '@' in path:
        raise MalformedURIError('Unescaped slash in userinfo section.')
    name = urllib.parse.unquote(path)
    if name != EXTERNAL_DATABASE and _BAD_DB_CHARS.search(name):
        raise MalformedURIError(f'Bad database name {name!r}')
    return name


def _validate_srv_hosts(hosts: List[Host]):
    if len(hosts) != 1:
        raise InvalidHostListError(f'{SRV_SCHEME}:// URIs must include one, and only one, hostname')
    host = hosts[0]
    if host.is_unix_socket:
        raise InvalidHostListError(f'{SRV_SCHEME}:// URIs may not name a unix domain socket')
    if host.port is not None:
        raise InvalidPortError(f'{SRV_SCHEME}:// URIs must not include a port number', value=host.port)
    if len(host.host.split('.')) < 3:
        raise InvalidHostListError(f'{SRV_SCHEME}:// host must have at least three labels: {host.host!r}', value=host.host)


def _assemble(scheme: str, hosts: List[Host], credentials: Optional[Credentials], database: Optional[str], options: Dict[str, OptionValue]) -> ParsedConnectionString:
    if not hosts:
        raise InvalidHostListError('No hostname or hostnames provided in connection string')
    if get_option(options, 'directConnection') is True:
        if len(hosts) > 1:
            raise InvalidOptionValueError('directConnection=true cannot be used with multiple hosts.', key='directConnection', value=True)
        if scheme == SRV_SCHEME:
            raise InvalidOptionValueError(f'directConnection=true cannot be used with {SRV_SCHEME}:// URIs.', key='directConnection', value=True)
    if scheme == SRV_SCHEME and get_option(options, 'tls') is None and get_option(options, 'ssl') is None:
        options['tls'] = True
    return ParsedConnectionString(hosts=hosts, credentials=credentials, database=database, options=options, scheme=scheme)


def _parse(uri: str, config: ParseOptions) -> ParsedConnectionString:
    parts = split_uri(uri)
    is_srv = parts.scheme == SRV_SCHEME
    username = password = None
    if parts.userinfo is not None:
        username, password = parse_userinfo(parts.userinfo)
    database = parse_database(parts.database) if parts.database else None
    hosts = split_hosts(parts.hosts, None if is_srv else config.default_port, config.to_ascii)
    if is_srv:
        _validate_srv_hosts(hosts)
    options = normalize_options(collect_query_params(parts.query), config.case_translate)
    credentials = resolve_credentials(username, password, database, options)
    return _assemble(parts.scheme, hosts, credentials, database, options)


def parse_connection_string(uri: str, options: Optional[ParseOptions] = None, **overrides) -> ParsedConnectionString:
    """
    Parse and validate a MongoDB connection string.

    Args:
        uri: A mongodb:// or mongodb+srv:// connection string.
        options: Parse configuration. Keyword overrides (e.g. case_translate=False)
            are applied on top of it.

    Returns:
        ParsedConnectionString with typed hosts, credentials, database and options.

    Raises:
        ParseError: the first problem found; no partial result is produced.
    """
    if options is None:
        options = ParseOptions(**overrides)
    elif overrides:
        options = dataclasses.replace(options, **overrides)
    try:
        result = _parse(uri, options)
    except ParseError as e:
        logger.debug('Rejected connection string %s: %s', redact_uri(uri), e)
        raise
    logger.debug('Parsed connection string %s (%d hosts, %d options)', result.connection_string, len(result.hosts), len(result.options))
    return result


def try_parse(uri: str, options: Optional[ParseOptions] = None, **overrides) -> ParseResult:
    """Like parse_connection_string, but returns the error instead of raising it."""
    try:
        return ParseResult(parse_connection_string(uri, options, **overrides), None)
    except ParseError as e:
        return ParseResult(None, e)


async def parse_async(uri: str, options: Optional[ParseOptions] = None, **overrides) -> ParsedConnectionString:
    # Parsing never blocks, so this is only a convenience for coroutine callers
    return parse_connection_string(uri, options, **overrides)


class MongoURI:

    @staticmethod
    def parse(uri: str, case_translate: bool = True) -> ParsedConnectionString:
        return parse_connection_string(uri, case_translate=case_translate)

from .auth import Credentials
from .errors import (
    ErrorKind,
    InvalidHostListError,
    InvalidOptionValueError,
    InvalidPortError,
    MalformedURIError,
    ParseError,
    UnknownAuthMechanismError,
)
from .hosts import DEFAULT_PORT, Host
from .options import RULES, Kind, Rule, lookup_rule
from .uri import (
    MongoURI,
    ParsedConnectionString,
    ParseOptions,
    ParseResult,
    parse_async,
    parse_connection_string,
    try_parse,
)

__version__ = '1.0.0'

parse = parse_connection_string

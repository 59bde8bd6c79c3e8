import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import InvalidOptionValueError, MalformedURIError
from .normalizer import get_option
from .utils import check_percent_encoding

DEFAULT_SOURCE = 'admin'
EXTERNAL_SOURCE = '$external'

# Mechanisms that cannot authenticate without a user name
USERNAME_REQUIRED_MECHANISMS = frozenset(['GSSAPI', 'MONGODB-CR', 'PLAIN', 'SCRAM-SHA-1', 'SCRAM-SHA-256'])
# Mechanisms whose credentials always live in the $external database
EXTERNAL_MECHANISMS = frozenset(['GSSAPI', 'MONGODB-X509', 'MONGODB-AWS'])


@dataclass
class Credentials:
    username: Optional[str]
    password: Optional[str] = field(default=None, repr=False)
    source: str = DEFAULT_SOURCE
    mechanism: Optional[str] = None
    mechanism_properties: Dict[str, Any] = field(default_factory=dict)


def parse_userinfo(userinfo: str) -> Tuple[str, Optional[str]]:
    """
    Validates the userinfo section of a URI and splits it on the first ':'.

    Returns (username, password), both percent-decoded. The password is
    None when no ':' is present and '' for 'user:@host'.
    """
    check_percent_encoding(userinfo, 'userinfo')
    user, sep, passwd = userinfo.partition(':')
    if not user:
        raise MalformedURIError('The empty string is not a valid username.')
    username = urllib.parse.unquote(user)
    password = urllib.parse.unquote(passwd) if sep else None
    return username, password


def resolve_credentials(username: Optional[str], password: Optional[str], database: Optional[str], options: Mapping[str, Any]) -> Optional[Credentials]:
    mechanism = get_option(options, 'authMechanism')
    auth_source = get_option(options, 'authSource')
    if username is None and mechanism is None:
        return None
    if mechanism in USERNAME_REQUIRED_MECHANISMS and username is None:
        raise InvalidOptionValueError(f'Username required for mechanism {mechanism}.', key='authMechanism', value=mechanism)
    if mechanism == 'MONGODB-X509' and password is not None:
        raise InvalidOptionValueError('Password not allowed for mechanism MONGODB-X509.', key='authMechanism', value=mechanism)

    if mechanism in EXTERNAL_MECHANISMS:
        if auth_source is not None and auth_source != EXTERNAL_SOURCE:
            raise InvalidOptionValueError(f'Invalid source {auth_source!r} for mechanism {mechanism}.', key='authSource', value=auth_source)
        source = EXTERNAL_SOURCE
    elif auth_source is not None:
        source = auth_source
    elif database:
        source = database
    elif mechanism == 'PLAIN':
        source = EXTERNAL_SOURCE
    else:
        source = DEFAULT_SOURCE

    properties = get_option(options, 'authMechanismProperties') or {}
    return Credentials(username=username, password=password, source=source, mechanism=mechanism, mechanism_properties=dict(properties))

import re
import urllib.parse
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import InvalidHostListError, InvalidPortError, MalformedURIError

DEFAULT_PORT = 27017
MAX_PORT = 65535
SOCKET_SUFFIX = '.sock'
TCP = 'tcp'
UNIX_SOCKET = 'unix-socket'

_PORT_RE = re.compile(r'[0-9]+')


@dataclass
class Host:
    kind: str
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None

    @property
    def is_unix_socket(self) -> bool:
        return self.kind == UNIX_SOCKET

    @property
    def address(self) -> str:
        if self.is_unix_socket:
            return self.path
        name = f'[{self.host}]' if ':' in self.host else self.host
        if self.port is None:
            return name
        return f'{name}:{self.port}'


def to_ascii(host: str) -> str:
    """IDN-normalizes a host name. ASCII names are returned untouched."""
    if host.isascii():
        return host
    return host.encode('idna').decode('ascii')


def parse_port(text: str) -> int:
    if not _PORT_RE.fullmatch(text):
        raise InvalidPortError(f'Port must be an integer between 0 and {MAX_PORT}: {text!r}', value=text)
    port = int(text)
    if port > MAX_PORT:
        raise InvalidPortError(f'Port must be an integer between 0 and {MAX_PORT}: {text!r}', value=text)
    return port


def parse_ipv6_literal_host(entity: str, default_port: int) -> Host:
    """
    Validates an IPv6 literal host string such as '[::1]' or '[::1]:27017'.
    The stored host is the literal without its brackets.
    """
    end = entity.find(']')
    if end == -1:
        raise MalformedURIError("An IPv6 address literal must be enclosed in '[' and ']' according to RFC 2732.", value=entity)
    literal = urllib.parse.unquote(entity[1:end])
    if ':' not in literal:
        raise InvalidHostListError(f'Invalid IPv6 address literal: {entity!r}', value=entity)
    rest = entity[end + 1:]
    if not rest:
        return Host(TCP, host=literal, port=default_port)
    if not rest.startswith(':'):
        raise InvalidHostListError(f"Unexpected characters after IPv6 literal: {entity!r}", value=entity)
    return Host(TCP, host=literal, port=parse_port(rest[1:]))


def parse_host(entity: str, default_port: int = DEFAULT_PORT, to_ascii: Callable[[str], str] = to_ascii) -> Host:
    if entity.startswith('['):
        return parse_ipv6_literal_host(entity, default_port)
    decoded = urllib.parse.unquote(entity)
    if decoded.endswith(SOCKET_SUFFIX):
        return Host(UNIX_SOCKET, path=decoded)
    if entity.count(':') > 1:
        raise InvalidHostListError("Reserved characters such as ':' must be escaped. An IPv6 address literal must be enclosed in '[' and ']'.", value=entity)
    name, sep, port_text = entity.partition(':')
    if not name:
        raise InvalidHostListError(f'Empty host name in {entity!r}', value=entity)
    port = parse_port(port_text) if sep else default_port
    name = urllib.parse.unquote(name)
    if '/' in name:
        raise InvalidHostListError(f'Unix domain socket paths must end in {SOCKET_SUFFIX!r}: {name!r}', value=entity)
    try:
        name = to_ascii(name)
    except UnicodeError as e:
        raise InvalidHostListError(f'Invalid host name {name!r}: {e}', value=entity) from e
    return Host(TCP, host=name, port=port)


def split_hosts(hosts: str, default_port: int = DEFAULT_PORT, to_ascii: Callable[[str], str] = to_ascii) -> List[Host]:
    """
    Takes a string of the form host1[:port],host2[:port]... and splits it
    into Host entries, preserving input order.
    """
    if not hosts:
        raise InvalidHostListError('Must provide at least one hostname or IP.')
    nodes = []
    for entity in hosts.split(','):
        if not entity:
            raise InvalidHostListError('Empty host (or extra comma in host list).', value=hosts)
        nodes.append(parse_host(entity, default_port, to_ascii))
    return nodes

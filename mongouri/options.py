from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Type

from .errors import InvalidOptionValueError, ParseError, UnknownAuthMechanismError


class Kind(str, Enum):
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    INTEGER_OR_TEXT = 'integer_or_text'
    ENUM = 'enum'
    TEXT = 'text'
    TEXT_LIST = 'text_list'
    MAPPING = 'mapping'
    TAG_SETS = 'tag_sets'


@dataclass(frozen=True)
class Rule:
    """A single URI option: its canonical name, coercion kind and constraints."""
    key: str
    kind: Kind
    allowed_values: Tuple[str, ...] = ()
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    alias_of: Optional[str] = None
    deprecated: bool = False
    case_sensitive: bool = True
    error: Type[ParseError] = InvalidOptionValueError

    def describe_range(self) -> str:
        if self.min_value is not None and self.max_value is not None:
            return f'an integer between {self.min_value} and {self.max_value}'
        if self.min_value is not None:
            return f'an integer greater than or equal to {self.min_value}'
        if self.max_value is not None:
            return f'an integer less than or equal to {self.max_value}'
        return 'an integer'


AUTH_MECHANISMS = ('DEFAULT', 'GSSAPI', 'PLAIN', 'MONGODB-CR', 'MONGODB-X509', 'SCRAM-SHA-1', 'SCRAM-SHA-256', 'MONGODB-AWS')
READ_PREFERENCE_MODES = ('primary', 'primaryPreferred', 'secondary', 'secondaryPreferred', 'nearest')
UUID_REPRESENTATIONS = ('unspecified', 'standard', 'pythonLegacy', 'javaLegacy', 'csharpLegacy')
COMPRESSORS = ('snappy', 'zlib', 'zstd')


def _boolean(key: str) -> Rule:
    return Rule(key, Kind.BOOLEAN)


def _integer(key: str, min_value: Optional[int] = 0, max_value: Optional[int] = None) -> Rule:
    return Rule(key, Kind.INTEGER, min_value=min_value, max_value=max_value)


def _text(key: str) -> Rule:
    return Rule(key, Kind.TEXT)


_RULES = [
    _boolean('retryWrites'),
    _boolean('retryReads'),
    _boolean('tls'),
    _boolean('ssl'),
    _boolean('tlsInsecure'),
    _boolean('tlsAllowInvalidCertificates'),
    _boolean('tlsAllowInvalidHostnames'),
    _boolean('journal'),
    _boolean('serverSelectionTryOnce'),
    _boolean('directConnection'),
    _integer('connectTimeoutMS'),
    _integer('socketTimeoutMS'),
    _integer('maxIdleTimeMS'),
    _integer('waitQueueTimeoutMS'),
    _integer('wtimeoutMS'),
    _integer('serverSelectionTimeoutMS'),
    _integer('localThresholdMS'),
    _integer('maxPoolSize'),
    _integer('minPoolSize'),
    _integer('waitQueueMultiple', min_value=1),
    _integer('heartbeatFrequencyMS', min_value=500),
    _integer('maxStalenessSeconds', min_value=-1),
    _integer('zlibCompressionLevel', min_value=-1, max_value=9),
    Rule('w', Kind.INTEGER_OR_TEXT, min_value=0),
    Rule('authMechanism', Kind.ENUM, allowed_values=AUTH_MECHANISMS, error=UnknownAuthMechanismError),
    Rule('readPreference', Kind.ENUM, allowed_values=READ_PREFERENCE_MODES),
    Rule('uuidRepresentation', Kind.ENUM, allowed_values=UUID_REPRESENTATIONS, case_sensitive=False),
    _text('replicaSet'),
    _text('authSource'),
    _text('appName'),
    _text('readConcernLevel'),
    _text('gssapiServiceName'),
    _text('tlsCAFile'),
    _text('tlsCertificateKeyFile'),
    _text('tlsCertificateKeyFilePassword'),
    Rule('compressors', Kind.TEXT_LIST, allowed_values=COMPRESSORS),
    Rule('authMechanismProperties', Kind.MAPPING),
    Rule('readPreferenceTags', Kind.TAG_SETS),
    # Deprecated spellings, redirected to their replacement
    Rule('wtimeout', Kind.INTEGER, alias_of='wtimeoutMS', deprecated=True),
    Rule('j', Kind.BOOLEAN, alias_of='journal', deprecated=True),
]

# Lowercased option name -> Rule. Read-only for the life of the process.
RULES: Mapping[str, Rule] = MappingProxyType({rule.key.lower(): rule for rule in _RULES})


def lookup_rule(key: str) -> Optional[Rule]:
    """Case-insensitive rule lookup. Returns None for unrecognized options."""
    return RULES.get(key.lower())


def resolve_alias(rule: Rule) -> Rule:
    if rule.alias_of:
        return RULES[rule.alias_of.lower()]
    return rule

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Tuple, Union

from .errors import InvalidOptionValueError
from .options import Kind, Rule, lookup_rule, resolve_alias

logger = logging.getLogger(__name__)

OptionValue = Union[bool, int, str, List[str], List[Dict[str, str]], Dict[str, Any]]

_INTEGER_RE = re.compile(r'[+-]?[0-9]+')

# authMechanismProperties sub-keys that are also exposed as top level options
GSSAPI_PROPERTIES = {
    'SERVICE_NAME': 'gssapiServiceName',
    'SERVICE_REALM': 'gssapiServiceRealm',
    'CANONICALIZE_HOST_NAME': 'gssapiCanonicalizeHostName',
}


def parse_boolean(value: str) -> bool:
    """Only the literal 'true' (any case) is true. '1', 'yes' and garbage are false."""
    return value.lower() == 'true'


def _invalid(rule: Rule, message: str, value: Any = None) -> InvalidOptionValueError:
    return rule.error(message, key=rule.key, value=value)


def _check_allowed(rule: Rule, value: str) -> str:
    if rule.case_sensitive:
        if value in rule.allowed_values:
            return value
    else:
        for allowed in rule.allowed_values:
            if allowed.lower() == value.lower():
                return allowed
    allowed = ', '.join(rule.allowed_values)
    raise _invalid(rule, f'Value for {rule.key} must be one of: {allowed}, found: {value!r}', value)


def _coerce_boolean(rule: Rule, values: List[str]) -> bool:
    return parse_boolean(values[-1])


def _coerce_integer(rule: Rule, values: List[str]) -> int:
    value = values[-1]
    if not _INTEGER_RE.fullmatch(value):
        raise _invalid(rule, f'{rule.key} must be {rule.describe_range()}, found: {value!r}', value)
    number = int(value)
    if rule.min_value is not None and number < rule.min_value:
        raise _invalid(rule, f'{rule.key} must be {rule.describe_range()}, found: {number}', value)
    if rule.max_value is not None and number > rule.max_value:
        raise _invalid(rule, f'{rule.key} must be {rule.describe_range()}, found: {number}', value)
    return number


def _coerce_integer_or_text(rule: Rule, values: List[str]) -> Union[int, str]:
    if _INTEGER_RE.fullmatch(values[-1]):
        return _coerce_integer(rule, values)
    return values[-1]


def _coerce_enum(rule: Rule, values: List[str]) -> str:
    return _check_allowed(rule, values[-1])


def _coerce_text(rule: Rule, values: List[str]) -> str:
    return values[-1]


def _coerce_text_list(rule: Rule, values: List[str]) -> List[str]:
    items = values[-1].split(',')
    if rule.allowed_values:
        return [_check_allowed(rule, item) for item in items]
    return items


def _split_pairs(rule: Rule, text: str) -> List[Tuple[str, str]]:
    pairs = []
    for pair in text.split(','):
        name, sep, value = pair.partition(':')
        if not sep or not name:
            # The raw value may hold a credential (e.g. a session token), keep it out of the error
            raise _invalid(rule, f'{rule.key} must be a comma separated list of KEY:VALUE pairs')
        pairs.append((name, value))
    return pairs


def _coerce_mapping(rule: Rule, values: List[str]) -> Dict[str, Any]:
    props: Dict[str, Any] = {}
    for name, value in _split_pairs(rule, values[-1]):
        props[name] = parse_boolean(value) if name == 'CANONICALIZE_HOST_NAME' else value
    return props


def _coerce_tag_sets(rule: Rule, values: List[str]) -> List[Dict[str, str]]:
    tag_sets = []
    for tag_set in values:
        if tag_set == '':
            tag_sets.append({})
        else:
            tag_sets.append(dict(_split_pairs(rule, tag_set)))
    return tag_sets


_COERCERS: Dict[Kind, Callable[[Rule, List[str]], Any]] = {
    Kind.BOOLEAN: _coerce_boolean,
    Kind.INTEGER: _coerce_integer,
    Kind.INTEGER_OR_TEXT: _coerce_integer_or_text,
    Kind.ENUM: _coerce_enum,
    Kind.TEXT: _coerce_text,
    Kind.TEXT_LIST: _coerce_text_list,
    Kind.MAPPING: _coerce_mapping,
    Kind.TAG_SETS: _coerce_tag_sets,
}


def _check_conflicts(typed: Dict[str, Tuple[str, Any]]):
    if 'tls' in typed and 'ssl' in typed and typed['tls'][1] != typed['ssl'][1]:
        raise InvalidOptionValueError('Conflicting values for tls and ssl; when both are given they must match.', key='ssl', value=typed['ssl'][1])
    if 'tlsInsecure' in typed:
        for key in ('tlsAllowInvalidCertificates', 'tlsAllowInvalidHostnames'):
            if key in typed:
                raise InvalidOptionValueError(f'tlsInsecure may not be combined with {key}.', key=key, value=typed[key][1])
    if 'minPoolSize' in typed and 'maxPoolSize' in typed:
        min_size, max_size = typed['minPoolSize'][1], typed['maxPoolSize'][1]
        # maxPoolSize=0 means no limit
        if max_size and min_size > max_size:
            raise InvalidOptionValueError(f'minPoolSize ({min_size}) may not be greater than maxPoolSize ({max_size}).', key='minPoolSize', value=min_size)


def normalize_options(params: Mapping[str, List[str]], case_translate: bool = True) -> Dict[str, OptionValue]:
    """
    Turns collected query parameters into typed, validated options.

    Args:
        params: Decoded option name -> raw values, as produced by collect_query_params.
        case_translate: Store recognized options under their canonical name.
            When False the first spelling seen in the URI is kept.

    Returns:
        Dict of option name -> typed value, including the synthesized
        compression, readConcern and gssapi* entries.

    Raises:
        InvalidOptionValueError: on the first invalid value.
    """
    options: Dict[str, OptionValue] = {}
    present = {key.lower() for key in params}
    merged: Dict[str, Tuple[Rule, str, List[str]]] = {}
    for key, values in params.items():
        rule = lookup_rule(key)
        if rule is None:
            logger.debug('Passing through unrecognized option %r', key)
            options[key] = values[0] if len(values) == 1 else list(values)
            continue
        if rule.alias_of:
            target = resolve_alias(rule)
            if target.key.lower() in present:
                logger.warning('Ignoring deprecated option %s in favor of %s', key, target.key)
                continue
            logger.warning('Option %s is deprecated, use %s instead', key, target.key)
            rule = target
        if rule.key in merged:
            merged[rule.key][2].extend(values)
        else:
            merged[rule.key] = (rule, rule.key if case_translate else key, list(values))

    typed: Dict[str, Tuple[str, Any]] = {}
    for canonical, (rule, stored, values) in merged.items():
        typed[canonical] = (stored, _COERCERS[rule.kind](rule, values))
    _check_conflicts(typed)

    compression: Dict[str, Any] = {}
    for canonical, (stored, value) in typed.items():
        if canonical in ('compressors', 'zlibCompressionLevel'):
            compression[canonical] = value
        else:
            options[stored] = value
    if compression:
        options['compression'] = {key: compression[key] for key in ('compressors', 'zlibCompressionLevel') if key in compression}
    if 'readConcernLevel' in typed:
        options['readConcern'] = {'level': typed['readConcernLevel'][1]}
    if 'authMechanismProperties' in typed:
        props = typed['authMechanismProperties'][1]
        for name, option in GSSAPI_PROPERTIES.items():
            if name in props:
                options[option] = props[name]
    return options


def get_option(options: Mapping[str, OptionValue], key: str, default: Any = None) -> Any:
    """Case-insensitive option read, for option maps built without case translation."""
    if key in options:
        return options[key]
    lowered = key.lower()
    for name, value in options.items():
        if name.lower() == lowered:
            return value
    return default

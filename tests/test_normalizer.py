import logging
import pytest
from mongouri.errors import InvalidOptionValueError
from mongouri.normalizer import get_option, normalize_options, parse_boolean


def test_deprecated_alias_is_redirected(caplog):
    with caplog.at_level(logging.WARNING, logger='mongouri.normalizer'):
        options = normalize_options({'wtimeout': ['100']})
    assert options == {'wtimeoutMS': 100}
    assert 'deprecated' in caplog.text


def test_canonical_key_beats_deprecated_alias():
    assert normalize_options({'wtimeout': ['100'], 'wtimeoutMS': ['200']}) == {'wtimeoutMS': 200}
    assert normalize_options({'wtimeoutMS': ['200'], 'wtimeout': ['100']}) == {'wtimeoutMS': 200}
    assert normalize_options({'j': ['true']}) == {'journal': True}
    assert normalize_options({'journal': ['false'], 'j': ['true']}) == {'journal': False}


def test_case_variants_are_merged():
    options = normalize_options({'readPreferenceTags': ['dc:ny'], 'READPREFERENCETAGS': ['dc:sf']})
    assert options == {'readPreferenceTags': [{'dc': 'ny'}, {'dc': 'sf'}]}


def test_case_variants_keep_first_spelling_without_translation():
    options = normalize_options({'ReadPreferenceTags': ['dc:ny'], 'readpreferencetags': ['']}, case_translate=False)
    assert options == {'ReadPreferenceTags': [{'dc': 'ny'}, {}]}


def test_repeated_scalar_last_value_wins():
    assert normalize_options({'maxPoolSize': ['5', '10']}) == {'maxPoolSize': 10}


@pytest.mark.parametrize('params', [
    {'maxPoolSize': ['abc']},
    {'maxPoolSize': ['-5']},
    {'maxPoolSize': ['']},
    {'connectTimeoutMS': ['1.5']},
    {'heartbeatFrequencyMS': ['100']},
    {'maxStalenessSeconds': ['-2']},
    {'waitQueueMultiple': ['0']},
    {'w': ['-1']},
])
def test_integer_errors(params):
    with pytest.raises(InvalidOptionValueError) as exc_info:
        normalize_options(params)
    assert exc_info.value.key == next(iter(params))


def test_integer_bounds():
    assert normalize_options({'maxStalenessSeconds': ['-1']}) == {'maxStalenessSeconds': -1}
    assert normalize_options({'heartbeatFrequencyMS': ['500']}) == {'heartbeatFrequencyMS': 500}
    assert normalize_options({'zlibCompressionLevel': ['9']}) == {'compression': {'zlibCompressionLevel': 9}}


def test_write_concern_integer_or_text():
    assert normalize_options({'w': ['2']}) == {'w': 2}
    assert normalize_options({'w': ['majority']}) == {'w': 'majority'}
    assert normalize_options({'w': ['dcTag']}) == {'w': 'dcTag'}


def test_enum_values():
    with pytest.raises(InvalidOptionValueError):
        normalize_options({'readPreference': ['PRIMARY']})
    assert normalize_options({'readPreference': ['secondaryPreferred']}) == {'readPreference': 'secondaryPreferred'}
    assert normalize_options({'uuidRepresentation': ['STANDARD']}) == {'uuidRepresentation': 'standard'}


def test_empty_values():
    assert normalize_options({'retryWrites': ['']}) == {'retryWrites': False}
    assert normalize_options({'appName': ['']}) == {'appName': ''}
    assert normalize_options({'readPreferenceTags': ['']}) == {'readPreferenceTags': [{}]}


def test_compressors_are_validated_individually():
    assert normalize_options({'compressors': ['zstd,zlib']}) == {'compression': {'compressors': ['zstd', 'zlib']}}
    with pytest.raises(InvalidOptionValueError):
        normalize_options({'compressors': ['zlib,']})


@pytest.mark.parametrize('params', [
    {'tls': ['true'], 'ssl': ['false']},
    {'tlsInsecure': ['true'], 'tlsAllowInvalidCertificates': ['true']},
    {'tlsInsecure': ['false'], 'tlsAllowInvalidHostnames': ['false']},
    {'minPoolSize': ['10'], 'maxPoolSize': ['5']},
])
def test_conflicting_options(params):
    with pytest.raises(InvalidOptionValueError):
        normalize_options(params)


def test_compatible_options():
    assert normalize_options({'tls': ['true'], 'ssl': ['TRUE']}) == {'tls': True, 'ssl': True}
    assert normalize_options({'minPoolSize': ['10'], 'maxPoolSize': ['0']}) == {'minPoolSize': 10, 'maxPoolSize': 0}
    assert normalize_options({'minPoolSize': ['5'], 'maxPoolSize': ['5']}) == {'minPoolSize': 5, 'maxPoolSize': 5}


@pytest.mark.parametrize('raw', ['SERVICE_NAME', 'SERVICE_NAME:a,', ':value'])
def test_malformed_mapping(raw):
    with pytest.raises(InvalidOptionValueError) as exc_info:
        normalize_options({'authMechanismProperties': [raw]})
    assert exc_info.value.key == 'authMechanismProperties'


def test_mapping_error_does_not_echo_value():
    with pytest.raises(InvalidOptionValueError) as exc_info:
        normalize_options({'authMechanismProperties': ['AWS_SESSION_TOKEN']})
    assert 'AWS_SESSION_TOKEN' not in str(exc_info.value)
    assert exc_info.value.value is None


def test_mapping_keeps_unknown_sub_keys():
    options = normalize_options({'authMechanismProperties': ['AWS_SESSION_TOKEN:abc']})
    assert options == {'authMechanismProperties': {'AWS_SESSION_TOKEN': 'abc'}}


def test_read_concern_keeps_level():
    assert normalize_options({'readConcernLevel': ['majority']}) == {'readConcernLevel': 'majority', 'readConcern': {'level': 'majority'}}


def test_unknown_options_pass_through():
    assert normalize_options({'foo': ['1'], 'Bar': ['a', 'b']}) == {'foo': '1', 'Bar': ['a', 'b']}


def test_parse_boolean():
    assert parse_boolean('true')
    assert parse_boolean('tRuE')
    assert not parse_boolean('1')
    assert not parse_boolean('')


def test_get_option():
    options = {'RetryWrites': True}
    assert get_option(options, 'retryWrites') is True
    assert get_option(options, 'RetryWrites') is True
    assert get_option(options, 'missing', 'x') == 'x'

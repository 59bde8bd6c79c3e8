from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    MALFORMED_URI = 'MalformedURI'
    INVALID_HOST_LIST = 'InvalidHostList'
    INVALID_PORT = 'InvalidPort'
    INVALID_OPTION_VALUE = 'InvalidOptionValue'
    UNKNOWN_AUTH_MECHANISM = 'UnknownAuthMechanism'


class ParseError(ValueError):
    """
    Base error for connection string parsing.
    Carries the error kind plus the offending option key/value when one applies.
    """
    kind = ErrorKind.MALFORMED_URI

    def __init__(self, message: str, key: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.message = message
        self.key = key
        self.value = value

    def __repr__(self):
        return f'{type(self).__name__}({self.message!r}, key={self.key!r})'


class MalformedURIError(ParseError):
    kind = ErrorKind.MALFORMED_URI


class InvalidHostListError(ParseError):
    kind = ErrorKind.INVALID_HOST_LIST


class InvalidPortError(ParseError):
    kind = ErrorKind.INVALID_PORT


class InvalidOptionValueError(ParseError):
    kind = ErrorKind.INVALID_OPTION_VALUE


class UnknownAuthMechanismError(InvalidOptionValueError):
    kind = ErrorKind.UNKNOWN_AUTH_MECHANISM

import urllib.parse
from typing import Dict, List

from .errors import MalformedURIError


def collect_query_params(query: str) -> Dict[str, List[str]]:
    """
    Splits the options portion of a URI into decoded key -> values.
    Repeated keys accumulate their values in encounter order; a key seen once
    still maps to a one-element list.
    """
    params: Dict[str, List[str]] = {}
    if not query:
        return params
    for pair in query.split('&'):
        if not pair:
            continue
        if '=' not in pair:
            raise MalformedURIError(f'URI options are key=value pairs, got {pair!r}.', key=urllib.parse.unquote(pair))
        key, value = pair.split('=', 1)
        key = urllib.parse.unquote(key)
        if not key:
            raise MalformedURIError(f'Empty option name in {pair!r}.', value=urllib.parse.unquote(value))
        params.setdefault(key, []).append(urllib.parse.unquote(value))
    return params

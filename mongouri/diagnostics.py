from typing import Any, Dict, List, Optional

from .errors import ParseError
from .normalizer import get_option
from .options import lookup_rule
from .query import collect_query_params
from .uri import ParseOptions, parse_connection_string, split_uri
from .utils import normalize_target, redact_uri


class Diagnostics:

    def __init__(self, target: str, options: Optional[ParseOptions] = None):
        self.target = normalize_target(target)
        self.options = options or ParseOptions()

    def _option_notes(self) -> List[str]:
        notes = []
        params = collect_query_params(split_uri(self.target).query)
        for key in params:
            rule = lookup_rule(key)
            if rule is None:
                notes.append(f"Unrecognized option '{key}' is passed through unvalidated.")
            elif rule.deprecated:
                notes.append(f"Option '{key}' is deprecated, use '{rule.alias_of}' instead.")
        return notes

    def doctor(self) -> Dict[str, Any]:
        report = {'target': redact_uri(self.target), 'status': 'healthy', 'issues': []}
        try:
            parsed = parse_connection_string(self.target, self.options)
        except ParseError as e:
            report['status'] = 'invalid'
            report['error_kind'] = e.kind.value
            report['issues'].append(str(e))
            return report
        report['hosts'] = [host.address for host in parsed.hosts]
        report['option_count'] = len(parsed.options)
        creds = parsed.credentials
        if creds and creds.password:
            report['issues'].append('Password embedded in URI. Prefer supplying credentials out of band.')
        if get_option(parsed.options, 'tlsInsecure') or get_option(parsed.options, 'tlsAllowInvalidCertificates'):
            report['issues'].append('TLS certificate validation is disabled.')
        if get_option(parsed.options, 'authSource') is not None and creds is None:
            report['issues'].append('authSource given without credentials has no effect.')
        report['issues'].extend(self._option_notes())
        if report['issues']:
            report['status'] = 'healthy_with_warnings'
        return report

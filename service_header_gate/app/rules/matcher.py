"""
Per-request evaluation of a header policy.
"""

import re
from typing import Mapping
from urllib.parse import unquote_plus

from starlette.datastructures import Headers

from shared.logging import get_logger
from .evaluators import contains_match, pattern_match, required_match
from .models import MatchMode, PolicySet, Rule, Verdict

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def query_unescape(value: str) -> str:
    """Decode a form-encoded value, ``+`` standing for a space.

    Raises ``ValueError`` only on a malformed percent escape. Bytes that are
    not valid UTF-8 are kept as surrogate escapes, so substrings and
    patterns still match around them.
    """
    bad = _BAD_ESCAPE.search(value)
    if bad:
        raise ValueError(f"invalid URL escape {value[bad.start():bad.start() + 3]!r}")
    return unquote_plus(value, errors="surrogateescape")


def header_value(headers: Mapping[str, str], name: str) -> str:
    """Return the first value of a header, or an empty string when absent."""
    if isinstance(headers, Headers):
        return headers.get(name, "")

    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return ""


class HeaderMatcher:
    """Evaluates an immutable policy set against request headers.

    Rules are checked in order and evaluation stops at the first rule that
    rejects. The matcher keeps no per-request state, so one instance can
    serve concurrent requests.
    """

    def __init__(self, policy_set: PolicySet, logger=None):
        self.policy_set = policy_set
        self.logger = logger or get_logger("header_gate.matcher")

    def evaluate(self, headers: Mapping[str, str]) -> Verdict:
        """Evaluate every rule and return the verdict for the request."""
        for rule in self.policy_set:
            observed = self._observed_value(rule, headers)

            if observed and rule.mode == MatchMode.CONTAINS:
                valid = contains_match(observed, rule, self.logger)
            elif observed and rule.mode == MatchMode.REGEX:
                valid = pattern_match(observed, rule, self.logger)
            else:
                valid = required_match(observed, rule, self.logger)

            if rule.debug:
                self.logger.info(
                    "Header rule evaluated",
                    header=rule.name,
                    headers_valid=valid,
                    observed=observed,
                    configured=list(rule.values)
                )

            if not valid:
                return Verdict(admitted=False, rejected_by=rule.name)

        return Verdict(admitted=True)

    def is_admitted(self, headers: Mapping[str, str]) -> bool:
        return self.evaluate(headers).admitted

    def _observed_value(self, rule: Rule, headers: Mapping[str, str]) -> str:
        observed = header_value(headers, rule.name)
        if not rule.url_decode:
            return observed

        try:
            return query_unescape(observed)
        except ValueError as e:
            # An undecodable value is treated as absent
            if rule.debug:
                self.logger.info("Header value could not be URL decoded", header=rule.name, error=str(e))
            return ""

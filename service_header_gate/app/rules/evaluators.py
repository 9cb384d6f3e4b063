"""
Predicate evaluators for header rules.

Each evaluator counts how many configured values match the observed header
value and reduces that count to a boolean with the rule's quantifier.
Tracing is only emitted for rules with ``debug`` enabled, through the
logger handed in by the caller.
"""

import re

from .models import Quantifier, Rule


def reduce_matches(count: int, total: int, quantifier: Quantifier) -> bool:
    """Reduce a match count to admit (True) or reject (False).

    ``none`` admits only when nothing matched. ``all`` requires every
    configured value to match. ``one`` admits on at least one match.
    """
    if quantifier == Quantifier.NONE:
        return count == 0

    if count == 0:
        return False

    if quantifier == Quantifier.ALL and count != total:
        return False

    return True


def contains_match(observed: str, rule: Rule, logger=None) -> bool:
    """Case-sensitive substring match of every configured value."""
    if rule.debug and logger is not None:
        logger.info("Validating contains", header=rule.name, observed=observed, configured=list(rule.values))

    count = sum(1 for value in rule.values if value in observed)
    return reduce_matches(count, len(rule.values), rule.quantifier)


def pattern_match(observed: str, rule: Rule, logger=None) -> bool:
    """Unanchored regular expression match of every configured pattern.

    A pattern that fails to compile counts as a miss.
    """
    if rule.debug and logger is not None:
        logger.info("Validating regex", header=rule.name, observed=observed, patterns=list(rule.values))

    count = 0
    for pattern in rule.values:
        try:
            if re.search(pattern, observed):
                count += 1
        except re.error as e:
            if rule.debug and logger is not None:
                logger.info("Error matching regex", header=rule.name, pattern=pattern, error=str(e))

    return reduce_matches(count, len(rule.values), rule.quantifier)


def required_match(observed: str, rule: Rule, logger=None) -> bool:
    """Exact match, also used whenever the header is absent or empty.

    When the rule is not required an empty value matches every configured
    value, so an absent optional header is always accepted unless the
    quantifier is ``none``.
    """
    if rule.debug and logger is not None:
        logger.info("Validating required", header=rule.name, observed=observed, configured=list(rule.values))

    count = 0
    for value in rule.values:
        if observed == value:
            count += 1

        if not rule.required and observed == "":
            count += 1

    if rule.quantifier == Quantifier.NONE:
        return count == 0

    return count > 0

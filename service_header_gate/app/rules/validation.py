"""
Construction-time validation of header policies.

A policy is validated once, when the service starts. The first rule that
fails a check aborts construction of the whole policy set with a
``PolicyConfigurationError`` naming the rule and the violated constraint;
a partially built policy set is never returned.
"""

import re
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from shared.errors import PolicyConfigurationError
from shared.logging import get_logger
from .models import HeaderRuleConfig, MatchMode, PolicySet, Quantifier, Rule

RuleRecord = Union[HeaderRuleConfig, Mapping[str, Any]]


def _coerce_record(record: RuleRecord, index: int) -> HeaderRuleConfig:
    """Turn a raw configuration record into a ``HeaderRuleConfig``."""
    if isinstance(record, HeaderRuleConfig):
        return record

    if not isinstance(record, Mapping):
        raise PolicyConfigurationError(
            f"configuration incorrect, header rule at position {index} is not a mapping",
            details={"rule_index": index}
        )

    try:
        return HeaderRuleConfig.model_validate(dict(record))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise PolicyConfigurationError(
            f"configuration incorrect, invalid header rule at position {index}: {problems}",
            details={"rule_index": index, "header": record.get("name")}
        ) from e


def _resolve_mode(config: HeaderRuleConfig) -> MatchMode:
    if config.contains:
        return MatchMode.CONTAINS
    if config.regex:
        return MatchMode.REGEX
    return MatchMode.EXACT


def build_rule(record: RuleRecord, index: int = 0, logger=None) -> Rule:
    """Validate a single rule record and return the immutable ``Rule``."""
    logger = logger or get_logger("header_gate.validation")
    config = _coerce_record(record, index)
    details = {"rule_index": index, "header": config.name}

    if not config.name.strip():
        raise PolicyConfigurationError(
            "configuration incorrect, missing header name",
            details=details
        )

    if not config.values:
        raise PolicyConfigurationError(
            f"configuration incorrect, missing header values for header {config.name}",
            details=details
        )

    for value in config.values:
        if not value.strip():
            raise PolicyConfigurationError(
                f"configuration incorrect, empty value found for header {config.name}",
                details=details
            )

    match_type = config.match_type.strip().lower()

    if match_type == Quantifier.ALL.value and not config.contains:
        raise PolicyConfigurationError(
            f"configuration incorrect for header {config.name}, "
            "matchtype 'all' can only be used in combination with 'contains'",
            details=details
        )

    if not match_type:
        raise PolicyConfigurationError(
            f"configuration incorrect, missing match type configuration for header {config.name}",
            details=details
        )

    try:
        quantifier = Quantifier(match_type)
    except ValueError:
        raise PolicyConfigurationError(
            f"configuration incorrect, unknown match type '{config.match_type}' for header {config.name}, "
            f"expected one of: {', '.join(q.value for q in Quantifier)}",
            details=details
        ) from None

    mode = _resolve_mode(config)

    if config.contains and config.regex:
        logger.warning(
            "Header rule sets both contains and regex, contains takes precedence",
            header=config.name,
            rule_index=index
        )

    if mode == MatchMode.REGEX:
        for pattern in config.values:
            try:
                re.compile(pattern)
            except re.error as e:
                logger.warning(
                    "Header rule pattern does not compile and will never match",
                    header=config.name,
                    pattern=pattern,
                    error=str(e)
                )

    return Rule(
        name=config.name.strip(),
        values=tuple(config.values),
        mode=mode,
        quantifier=quantifier,
        required=config.required,
        url_decode=config.url_decode,
        debug=config.debug,
    )


def build_policy_set(records: Optional[Sequence[RuleRecord]], logger=None) -> PolicySet:
    """Validate every record and return the ordered ``PolicySet``."""
    logger = logger or get_logger("header_gate.validation")

    if not records:
        raise PolicyConfigurationError("configuration incorrect, missing headers")

    if isinstance(records, (str, bytes, Mapping)):
        raise PolicyConfigurationError("configuration incorrect, headers must be a list of rules")

    rules = tuple(build_rule(record, index, logger) for index, record in enumerate(records))

    policy = PolicySet(rules=rules)
    logger.info("Header policy built", rules=len(policy), headers=policy.header_names)
    return policy

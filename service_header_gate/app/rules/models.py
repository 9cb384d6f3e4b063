"""
Header rule data models for the Header Gate service.
"""

from typing import Iterator, List, Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Quantifier(str, Enum):
    """How a per-rule match count is reduced to admit/reject."""
    ALL = "all"
    ONE = "one"
    NONE = "none"


class MatchMode(str, Enum):
    """Comparison strategy applied to an observed header value."""
    EXACT = "exact"
    CONTAINS = "contains"
    REGEX = "regex"


class HeaderRuleConfig(BaseModel):
    """A header rule as it appears in the policy configuration.

    Optional flags carry their resolved defaults; only ``required`` is on
    unless stated otherwise. Field names follow the configuration keys
    (``matchtype``, ``urldecode``); the python names are accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: str = Field("", description="Header name to inspect")
    values: List[str] = Field(default_factory=list, description="Values to compare against")
    match_type: str = Field("", alias="matchtype", description="Quantifier: all, one or none")
    required: bool = Field(True, description="Reject when the header is absent")
    contains: bool = Field(False, description="Substring comparison")
    url_decode: bool = Field(False, alias="urldecode", description="Percent-decode the header first")
    debug: bool = Field(False, description="Trace evaluation of this rule")
    regex: bool = Field(False, description="Treat values as regular expressions")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        # A null key means "not set" and falls back to the default
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


@dataclass(frozen=True)
class Rule:
    """Validated policy for a single header."""
    name: str
    values: Tuple[str, ...]
    mode: MatchMode = MatchMode.EXACT
    quantifier: Quantifier = Quantifier.ONE
    required: bool = True
    url_decode: bool = False
    debug: bool = False


@dataclass(frozen=True)
class PolicySet:
    """Ordered, read-only collection of rules."""
    rules: Tuple[Rule, ...]

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    @property
    def header_names(self) -> List[str]:
        return [rule.name for rule in self.rules]


@dataclass(frozen=True)
class Verdict:
    """Outcome of evaluating a policy set against one request."""
    admitted: bool
    rejected_by: Optional[str] = None

    def __bool__(self) -> bool:
        return self.admitted

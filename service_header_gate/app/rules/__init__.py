"""
Header rules package.

Defines the header rule model and the admission engine used by the Header
Gate. A policy is a list of rules, one per header, each comparing the
observed header value against configured values with an exact, substring
or regular expression strategy and an all/one/none quantifier.

Modules of interest:
- models: Rule, PolicySet, Verdict and the configuration record.
- validation: Construction-time checks producing a PolicySet.
- evaluators: Contains, pattern and required predicates.
- matcher: Per-request evaluation with short-circuit on first rejection.
- loader: Policy loading from JSON/YAML files or inline settings.
"""

from .models import (
    HeaderRuleConfig, MatchMode, PolicySet, Quantifier, Rule, Verdict
)
from .validation import build_policy_set, build_rule
from .matcher import HeaderMatcher, query_unescape
from .loader import load_policy, load_policy_file, parse_policy

__all__ = [
    "HeaderRuleConfig",
    "MatchMode",
    "PolicySet",
    "Quantifier",
    "Rule",
    "Verdict",
    "build_policy_set",
    "build_rule",
    "HeaderMatcher",
    "query_unescape",
    "load_policy",
    "load_policy_file",
    "parse_policy",
]

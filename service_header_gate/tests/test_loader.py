"""
Unit tests for header policy loading.
"""

import json

import pytest

from shared.config import BaseConfig
from shared.errors import PolicyConfigurationError
from service_header_gate.app.rules.loader import load_policy, load_policy_file, parse_policy
from service_header_gate.app.rules.models import MatchMode, Quantifier

RULES = [
    {"name": "X-Key", "values": ["secret"], "matchtype": "one"},
    {"name": "User-Agent", "values": ["curl", "wget"], "matchtype": "none", "contains": True},
]

YAML_POLICY = """
headers:
  - name: X-Key
    values: ["secret"]
    matchtype: one
  - name: X-Tenant
    values:
      - "^tenant-[0-9]+$"
    matchtype: one
    regex: true
    required: false
"""


class TestParsePolicy:
    """Test cases for parse_policy."""

    def test_list_of_rules(self):
        """Test a bare list of rules."""
        policy = parse_policy(RULES)

        assert policy.header_names == ["X-Key", "User-Agent"]

    def test_headers_mapping(self):
        """Test rules nested under headers."""
        policy = parse_policy({"headers": RULES})

        assert len(policy) == 2

    def test_mapping_without_headers(self):
        """Test a mapping without headers is a missing policy."""
        with pytest.raises(PolicyConfigurationError, match="missing headers"):
            parse_policy({"rules": RULES})


class TestLoadPolicyFile:
    """Test cases for load_policy_file."""

    def test_json_file(self, tmp_path):
        """Test loading a JSON policy."""
        path = tmp_path / "policy.json"
        path.write_text(json.dumps({"headers": RULES}), encoding="utf-8")

        policy = load_policy_file(path)

        assert policy.header_names == ["X-Key", "User-Agent"]
        assert list(policy)[1].mode == MatchMode.CONTAINS

    def test_yaml_file(self, tmp_path):
        """Test loading a YAML policy."""
        path = tmp_path / "policy.yaml"
        path.write_text(YAML_POLICY, encoding="utf-8")

        policy = load_policy_file(str(path))
        tenant_rule = list(policy)[1]

        assert tenant_rule.mode == MatchMode.REGEX
        assert tenant_rule.quantifier == Quantifier.ONE
        assert tenant_rule.required is False
        assert tenant_rule.values == ("^tenant-[0-9]+$",)

    def test_missing_file(self, tmp_path):
        """Test an unreadable file is a configuration error."""
        with pytest.raises(PolicyConfigurationError, match="cannot read policy file"):
            load_policy_file(tmp_path / "absent.json")

    def test_malformed_json(self, tmp_path):
        """Test a JSON syntax error is a configuration error."""
        path = tmp_path / "policy.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(PolicyConfigurationError, match="cannot parse policy file"):
            load_policy_file(path)

    def test_malformed_yaml(self, tmp_path):
        """Test a YAML syntax error is a configuration error."""
        path = tmp_path / "policy.yml"
        path.write_text("headers: [unclosed", encoding="utf-8")

        with pytest.raises(PolicyConfigurationError, match="cannot parse policy file"):
            load_policy_file(path)

    def test_invalid_rule_in_file(self, tmp_path):
        """Test validation errors propagate from files."""
        path = tmp_path / "policy.json"
        path.write_text(json.dumps([{"name": "X-Key", "values": ["a"], "matchtype": "all"}]), encoding="utf-8")

        with pytest.raises(PolicyConfigurationError, match="'contains'"):
            load_policy_file(path)


class TestLoadPolicy:
    """Test cases for load_policy."""

    def test_inline_policy(self):
        """Test the inline policy setting."""
        policy = load_policy(BaseConfig(policy=RULES))

        assert len(policy) == 2

    def test_file_takes_precedence(self, tmp_path):
        """Test the policy file wins over the inline policy."""
        path = tmp_path / "policy.json"
        path.write_text(json.dumps(RULES[:1]), encoding="utf-8")

        policy = load_policy(BaseConfig(policy_file=str(path), policy=RULES))

        assert policy.header_names == ["X-Key"]

    def test_no_policy_configured(self):
        """Test a missing policy is a configuration error."""
        with pytest.raises(PolicyConfigurationError, match="missing headers"):
            load_policy(BaseConfig(policy_file=None, policy=None))

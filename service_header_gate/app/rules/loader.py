"""
Loading header policies from configuration.
"""

import json
from pathlib import Path
from typing import Any, Union

import yaml

from shared.config import BaseConfig
from shared.errors import PolicyConfigurationError
from shared.logging import get_logger
from .models import PolicySet
from .validation import build_policy_set

logger = get_logger("header_gate.loader")


def parse_policy(data: Any) -> PolicySet:
    """Build a policy set from decoded configuration data.

    Accepts either a list of rule records or a mapping holding them under
    ``headers``.
    """
    if isinstance(data, dict):
        data = data.get("headers")

    return build_policy_set(data)


def load_policy_file(path: Union[str, Path]) -> PolicySet:
    """Read a JSON or YAML policy file and build the policy set."""
    path = Path(path)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise PolicyConfigurationError(
            f"configuration incorrect, cannot read policy file {path}: {e.strerror}",
            details={"policy_file": str(path)}
        ) from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise PolicyConfigurationError(
            f"configuration incorrect, cannot parse policy file {path}: {e}",
            details={"policy_file": str(path)}
        ) from e

    logger.info("Header policy file loaded", policy_file=str(path))
    return parse_policy(data)


def load_policy(config: BaseConfig) -> PolicySet:
    """Build the policy set named by the service configuration."""
    if config.policy_file:
        return load_policy_file(config.policy_file)

    if config.policy:
        return parse_policy(config.policy)

    raise PolicyConfigurationError("configuration incorrect, missing headers")

"""Packaging policy loading and validation.

This module loads YAML policy files and validates them using the
Pydantic models in streampack.policy.models.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from streampack.exceptions import StreamPackError
from streampack.policy.models import PackagingPolicy


class PolicyValidationError(StreamPackError):
    """Error during policy validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


def default_policy() -> PackagingPolicy:
    """Return the built-in policy used when no policy file is configured."""
    return PackagingPolicy()


def load_policy(policy_path: Path | None) -> PackagingPolicy:
    """Load and validate a policy from a YAML file.

    Args:
        policy_path: Path to the YAML policy file. None returns the
            built-in defaults.

    Returns:
        Validated PackagingPolicy.

    Raises:
        PolicyValidationError: If the policy file is invalid.
        FileNotFoundError: If the policy file does not exist.
    """
    if policy_path is None:
        return default_policy()

    if not policy_path.exists():
        raise FileNotFoundError(f"Policy file not found: {policy_path}")

    try:
        with open(policy_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PolicyValidationError(f"Invalid YAML syntax: {e}") from e

    if data is None:
        return default_policy()

    if not isinstance(data, dict):
        raise PolicyValidationError("Policy file must be a YAML mapping")

    return load_policy_from_dict(data)


def load_policy_from_dict(data: dict[str, Any]) -> PackagingPolicy:
    """Load and validate a policy from a dictionary.

    Args:
        data: Dictionary containing policy configuration.

    Returns:
        Validated PackagingPolicy.

    Raises:
        PolicyValidationError: If the policy data is invalid.
    """
    try:
        return PackagingPolicy.model_validate(data)
    except ValidationError as e:
        raise PolicyValidationError(*_format_validation_error(e)) from e


def _format_validation_error(error: ValidationError) -> tuple[str, str | None]:
    """Format a Pydantic validation error into a message and field path."""
    errors = error.errors()
    if not errors:
        return f"Policy validation failed: {error}", None
    first_error = errors[0]
    loc = ".".join(str(x) for x in first_error.get("loc", []))
    msg = first_error.get("msg", str(error))
    if loc:
        return f"Policy validation failed: {loc}: {msg}", loc
    return f"Policy validation failed: {msg}", None

"""Policy document loading."""

from pathlib import Path
from typing import Any

import pydantic
import yaml

from rolegate.core.errors import NotFoundError, ValidationError
from rolegate.policy.schemas import PolicyDocument


def _field_errors(exc: pydantic.ValidationError) -> list[dict[str, Any]]:
    errors: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = ".".join(str(part) for part in loc) if loc else "unknown"
        errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type"),
            }
        )
    return errors


def parse_policy(data: Any) -> PolicyDocument:
    """Validate already-decoded policy data.

    Raises:
        ValidationError: If the data is not a valid policy document
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Policy document must be a mapping")

    try:
        return PolicyDocument.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError("Invalid policy document", errors=_field_errors(e)) from e


def load_policy(path: Path) -> PolicyDocument:
    """Load a YAML policy document.

    Args:
        path: Path to the policy file

    Returns:
        The validated policy

    Raises:
        NotFoundError: If the file does not exist
        ValidationError: If the file is not valid YAML or not a valid policy
    """
    if not path.exists():
        raise NotFoundError(
            f"Policy file '{path}' not found", resource="policy", resource_id=str(path)
        )

    with path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Policy file '{path}' is not valid YAML: {e}") from e

    return parse_policy(data)

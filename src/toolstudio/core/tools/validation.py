"""
Validation rules for tool records.

All functions are pure. Every rule is evaluated so callers receive the full
list of violations in one pass; uniqueness against the rest of the collection
is checked by the registry.
"""

import re
from typing import Any, Dict, List, Mapping, Union

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from toolstudio.core.exceptions import ValidationError
from toolstudio.core.models import TOOL_PATH_PREFIX, Tool, ToolCategory

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

VALID_CATEGORIES = frozenset(category.value for category in ToolCategory)

# Required free-text fields and their labels in error messages
_REQUIRED_TEXT_FIELDS = (
    ("name", "Tool name"),
    ("description", "Tool description"),
    ("icon", "Tool icon"),
    ("version", "Tool version"),
)

# Fields only the registry may set
PROTECTED_FIELDS = frozenset({"id", "created_at", "usage_count", "last_used"})

TOOL_FIELDS = frozenset(Tool.model_fields)

_ALIASES = {to_camel(name): name for name in TOOL_FIELDS}

Candidate = Union[Tool, Mapping[str, Any]]


def normalize_tool_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase keys (as used in persisted records) to model field names."""
    return {_ALIASES.get(key, key): value for key, value in data.items()}


def is_valid_slug(value: Any) -> bool:
    """Check whether a value is a lowercase, hyphen-separated slug."""
    return isinstance(value, str) and bool(SLUG_PATTERN.match(value))


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_tool(candidate: Candidate) -> List[str]:
    """
    Check a candidate tool record against the structural rules.

    Args:
        candidate: A Tool, or a mapping with snake_case or camelCase keys

    Returns:
        List of violation messages; empty when the candidate is valid
    """
    if isinstance(candidate, Tool):
        data = candidate.model_dump()
    else:
        data = normalize_tool_fields(candidate)

    errors: List[str] = []

    tool_id = data.get("id")
    if not _is_non_empty_string(tool_id):
        errors.append("Tool ID is required and must be a string")
    elif not is_valid_slug(tool_id):
        errors.append("Tool ID must be a URL-safe slug (lowercase, hyphen-separated)")

    for field_name, label in _REQUIRED_TEXT_FIELDS:
        if not _is_non_empty_string(data.get(field_name)):
            errors.append(f"{label} is required and must be a non-empty string")

    category = data.get("category")
    category_value = category.value if isinstance(category, ToolCategory) else category
    if category_value not in VALID_CATEGORIES:
        errors.append(
            "Tool category is required and must be one of: "
            + ", ".join(sorted(VALID_CATEGORIES))
        )

    path = data.get("path")
    if not _is_non_empty_string(path):
        errors.append("Tool path is required and must be a string")
    elif not path.startswith(TOOL_PATH_PREFIX):
        errors.append(f'Tool path must start with "{TOOL_PATH_PREFIX}"')

    return errors


def build_tool(data: Mapping[str, Any]) -> Tool:
    """
    Build a tool from static configuration, rejecting invalid definitions.

    Args:
        data: Tool fields with snake_case or camelCase keys

    Returns:
        The validated Tool

    Raises:
        ValidationError: If any rule is violated
    """
    errors = validate_tool(data)
    if not errors:
        try:
            return Tool.model_validate(normalize_tool_fields(data))
        except PydanticValidationError as e:
            errors = format_model_errors(e)
    raise ValidationError(
        f"Invalid tool definition {data.get('id')!r}",
        errors=errors,
        error_code="TOOL_INVALID",
    )


def format_model_errors(error: PydanticValidationError) -> List[str]:
    """Flatten pydantic errors into violation messages."""
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "tool"
        messages.append(f"Invalid value for {location}: {item['msg']}")
    return messages


def validate_tool_updates(updates: Mapping[str, Any]) -> List[str]:
    """
    Check that a partial update only touches user-editable fields.

    Args:
        updates: Field updates with snake_case or camelCase keys

    Returns:
        List of violation messages
    """
    errors: List[str] = []
    for field_name in normalize_tool_fields(updates):
        if field_name in PROTECTED_FIELDS:
            errors.append(f'Field "{field_name}" cannot be changed through an update')
        elif field_name not in TOOL_FIELDS:
            errors.append(f'Unknown tool field "{field_name}"')
    return errors

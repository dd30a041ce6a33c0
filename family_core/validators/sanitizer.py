"""
validators/sanitizer.py: Recursive stripping of angle brackets from untrusted input.
"""
from collections.abc import Mapping
from typing import Any

ANGLE_BRACKETS = str.maketrans("", "", "<>")


def sanitize_input(data: Any) -> Any:
    """
    Strip `<` and `>` from every string inside `data` and trim the result.

    This is basic markup neutralisation, not an HTML escape. Mappings keep their
    keys and order, lists and tuples keep their length and order, and any other
    value (numbers, booleans, None) is returned unchanged.

    Args:
        data (Any): A JSON-like value.

    Returns:
        Any: The sanitized value.
    """
    if isinstance(data, str):
        # remove before trimming so a second pass is a no-op
        return data.translate(ANGLE_BRACKETS).strip()

    if isinstance(data, Mapping):
        return {key: sanitize_input(value) for key, value in data.items()}

    if isinstance(data, (list, tuple)):
        return [sanitize_input(item) for item in data]

    return data

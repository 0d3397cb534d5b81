"""
Loose record access over decoded JSON of unknown shape.
"""
from typing import Any, Iterable, List, Optional, Union

Scalar = (str, int, float, bool)

Keys = Union[str, Iterable[str]]


def is_record(value: Any) -> bool:
    return isinstance(value, dict)


def is_record_list(value: Any) -> bool:
    """A non-empty list whose first element is itself a record."""
    return isinstance(value, list) and len(value) > 0 and is_record(value[0])


class LooseRecord:
    """
    Read-only view of one decoded JSON mapping.

    All parser branches read fields through get_string() so that a missing
    key, a null, or a nested structure where a scalar was expected all fall
    back to the same default.
    """
    def __init__(self, data: Any):
        self.data = data if isinstance(data, dict) else {}

    def __bool__(self) -> bool:
        return bool(self.data)

    def lookup(self, path: str) -> Any:
        """
        Resolve a dotted key path such as 'source.name'.

        Returns:
            The value, or None if any step is missing
        """
        current: Any = self.data
        for part in path.split('.'):
            if isinstance(current, dict):
                if part not in current:
                    return None
                current = current[part]
            elif isinstance(current, list) and part.isdigit():
                index = int(part)
                if index >= len(current):
                    return None
                current = current[index]
            else:
                return None
        return current

    def get_string(self, keys: Keys, default: str = '') -> str:
        """
        Return the first candidate key holding a non-empty scalar, as a string.

        Args:
            keys: One key path or an ordered list of candidate key paths
            default: Returned when no candidate yields a value

        Returns:
            The stripped string value or the default
        """
        if isinstance(keys, str):
            keys = [keys]
        for key in keys:
            value = self.lookup(key)
            if isinstance(value, bool):
                return 'true' if value else 'false'
            if isinstance(value, Scalar):
                text = str(value).strip()
                if text:
                    return text
        return default

    def get_optional(self, keys: Keys) -> Optional[str]:
        return self.get_string(keys) or None

    def get_list(self, keys: Keys) -> Optional[List[Any]]:
        """Return the first candidate key holding a list."""
        if isinstance(keys, str):
            keys = [keys]
        for key in keys:
            value = self.lookup(key)
            if isinstance(value, list):
                return value
        return None


def find_record_list(response: Any) -> List[Any]:
    """
    Best-effort discovery of the item list inside an unknown response.

    Checks the root, then every top-level value, then the values of
    top-level mappings one level down. Deeper nesting is not searched.

    Args:
        response: Decoded JSON

    Returns:
        The first list of records found, or an empty list
    """
    if is_record_list(response):
        return response
    if not isinstance(response, dict):
        return []

    for value in response.values():
        if is_record_list(value):
            return value

    for value in response.values():
        if isinstance(value, dict):
            for nested in value.values():
                if is_record_list(nested):
                    return nested
    return []

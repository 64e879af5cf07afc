from typing import Any, Optional

_TRUTHY = frozenset({"y", "yes", "t", "true", "on", "1"})
_FALSY = frozenset({"n", "no", "f", "false", "off", "0"})


def env_to_bool(value: Optional[Any], default: bool = False) -> bool:
    """Convert various string/int/boolean representations to a proper bool.

    Accepts common truthy/falsy strings such as 'true', 'false', '1', '0',
    'yes', 'no', 'on', 'off', regardless of case. If the value is None or
    an empty string, returns the supplied default.
    """
    if isinstance(value, bool):
        return value

    if value in (None, ""):
        return default

    normalized = str(value).strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    # Unparsable value – fall back to default
    return default

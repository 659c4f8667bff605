"""
Text Utilities - lam sach str truoc khi encode UTF-8.

JSON cho phep escape "\\ud83d" le (thieu nua con lai cua surrogate pair).
json.loads bien no thanh mot lone surrogate trong str, va str.encode("utf-8")
se raise UnicodeEncodeError. Cap surrogate day du duoc ghep lai thanh
code point that; surrogate le duoc thay bang U+FFFD.
"""

from typing import Any


def replace_lone_surrogates(text: str) -> str:
    """
    Tra ve text an toan de encode UTF-8.

    Args:
        text: Bat ky str nao

    Returns:
        Chinh text neu da hop le, nguoc lai ban da thay surrogate le
        bang U+FFFD
    """
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace")
    return text


def scrub_surrogates(value: Any) -> Any:
    """
    replace_lone_surrogates() cho moi str (ke ca dict keys) trong mot
    JSON value da decode.
    """
    if isinstance(value, str):
        return replace_lone_surrogates(value)
    if isinstance(value, list):
        return [scrub_surrogates(item) for item in value]
    if isinstance(value, dict):
        return {
            replace_lone_surrogates(key): scrub_surrogates(item)
            for key, item in value.items()
        }
    return value

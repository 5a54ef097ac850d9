"""Label, key and binding normalization shared by the ability extractors."""

import re
from types import MappingProxyType
from typing import Mapping

ABILITY_TYPE_MAP: Mapping[str, str] = MappingProxyType(
    {
        "Primary 1": "Left Mouse Button",
        "Primary 2": "Right Mouse Button",
        "Primary": "Left Mouse Button",
        "Q": "Q",
        "E": "E",
        "F": "F",
        "Passive": "Passive",
        "Left Shift": "Left Shift",
    }
)

MOUSE_BUTTON_BINDINGS: Mapping[str, str] = MappingProxyType(
    {
        "left mouse button": "Left Mouse Button",
        "right mouse button": "Right Mouse Button",
    }
)

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_SEPARATOR_RE = re.compile(r"[_\-:]+$")
_UNDERSCORE_CHAR_RE = re.compile(r"_(.)")


def normalize_key(label: str) -> str:
    """Turn a free-text label such as ``"Cooldown -"`` into ``"cooldown"``."""
    key = _WHITESPACE_RE.sub("_", label.strip().lower())
    return _TRAILING_SEPARATOR_RE.sub("", key)


def to_camel(key: str) -> str:
    return _UNDERSCORE_CHAR_RE.sub(lambda match: match.group(1).upper(), key)


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


def map_ability_type(raw_type: str) -> str:
    return ABILITY_TYPE_MAP.get(raw_type, raw_type)


def map_mouse_binding(label: str | None) -> str | None:
    if not label:
        return None
    return MOUSE_BUTTON_BINDINGS.get(label.strip().lower())

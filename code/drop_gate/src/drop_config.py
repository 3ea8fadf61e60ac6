"""
OnceDrop Drop Gate Configuration
Typed, clamped snapshot of the drop options. Loading never fails: every
missing or invalid option falls back to its default.

Recognized options (optionally prefixed with "OnceDrop."):
    Enable         = 1         # bool
    NpcEntry       = 12056     # creature template entry
    Chance         = 1.0       # float (%)
    AllowRepeat    = 0         # bool
    ResetOnStartup = 0         # bool
    ItemEntry      = 17782     # reward item entry
    ItemName       = Talisman of Binding Shard
"""

import logging
import math
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Mapping, Optional

from config.settings import (
    CONFIG_PREFIX,
    DEFAULT_CHANCE_PCT,
    DEFAULT_ITEM_ENTRY,
    DEFAULT_ITEM_NAME,
    DEFAULT_NPC_ENTRY,
)

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class DropConfig:
    """Drop gate settings"""

    enable: bool = True
    npc_entry: int = DEFAULT_NPC_ENTRY
    chance_pct: float = DEFAULT_CHANCE_PCT
    allow_repeat: bool = False
    reset_on_startup: bool = False
    item_entry: int = DEFAULT_ITEM_ENTRY
    item_name: str = DEFAULT_ITEM_NAME

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_CONFIG = DropConfig()


def _lookup(raw: Mapping[str, Any], option: str) -> Optional[Any]:
    prefixed = CONFIG_PREFIX + option
    if prefixed in raw:
        return raw[prefixed]
    return raw.get(option)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_uint(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    number = int(str(value).strip()) if not isinstance(value, int) else value
    if number < 0:
        raise ValueError(f"negative: {value!r}")
    return number


def _parse_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    number = float(value)
    if math.isnan(number):
        raise ValueError("NaN")
    return number


def _parse_str(value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise ValueError("empty")
    return text


_OPTIONS = (
    # option key, field, parser
    ("Enable", "enable", _parse_bool),
    ("NpcEntry", "npc_entry", _parse_uint),
    ("Chance", "chance_pct", _parse_float),
    ("AllowRepeat", "allow_repeat", _parse_bool),
    ("ResetOnStartup", "reset_on_startup", _parse_bool),
    ("ItemEntry", "item_entry", _parse_uint),
    ("ItemName", "item_name", _parse_str),
)


def normalize(config: DropConfig) -> DropConfig:
    """Apply the entry defaults and clamp the chance into [0, 100]."""
    changes = {}
    if not config.npc_entry:
        changes["npc_entry"] = DEFAULT_NPC_ENTRY
    if not config.item_entry:
        changes["item_entry"] = DEFAULT_ITEM_ENTRY
    if config.chance_pct < 0.0:
        changes["chance_pct"] = 0.0
    elif config.chance_pct > 100.0:
        changes["chance_pct"] = 100.0
    return replace(config, **changes) if changes else config


def load_drop_config(raw_options: Optional[Mapping[str, Any]] = None) -> DropConfig:
    """
    Build a DropConfig from raw option values (strings from a config file or
    the environment, or already typed values).
    """
    raw_options = raw_options or {}
    values = {}

    for option, field_name, parser in _OPTIONS:
        value = _lookup(raw_options, option)
        if value is None:
            continue
        try:
            values[field_name] = parser(value)
        except (TypeError, ValueError) as e:
            default = getattr(DEFAULT_CONFIG, field_name)
            logger.warning(f"Invalid value for {CONFIG_PREFIX}{option} ({e}); using default {default!r}")

    return normalize(DropConfig(**values))

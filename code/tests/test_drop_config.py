import math

from config.settings import DEFAULT_ITEM_ENTRY, DEFAULT_NPC_ENTRY, drop_gate_options
from drop_gate.src.drop_config import DropConfig, load_drop_config, normalize


def test_defaults_when_no_options():
    config = load_drop_config({})
    assert config == DropConfig()
    assert config.enable is True
    assert config.npc_entry == DEFAULT_NPC_ENTRY
    assert config.chance_pct == 1.0
    assert config.allow_repeat is False
    assert config.reset_on_startup is False
    assert config.item_entry == DEFAULT_ITEM_ENTRY


def test_parses_string_options():
    config = load_drop_config({
        "Enable": "0",
        "NpcEntry": "11502",
        "Chance": "12.5",
        "AllowRepeat": "yes",
        "ResetOnStartup": "TRUE",
        "ItemName": "Eye of Sulfuras",
    })
    assert config.enable is False
    assert config.npc_entry == 11502
    assert config.chance_pct == 12.5
    assert config.allow_repeat is True
    assert config.reset_on_startup is True
    assert config.item_name == "Eye of Sulfuras"


def test_prefixed_key_wins_over_bare_key():
    config = load_drop_config({"Chance": "5", "OnceDrop.Chance": "7.5"})
    assert config.chance_pct == 7.5


def test_invalid_values_fall_back_to_defaults():
    config = load_drop_config({
        "Enable": "maybe",
        "NpcEntry": "geddon",
        "Chance": "lots",
        "ItemEntry": "-3",
    })
    assert config == DropConfig()


def test_nan_chance_falls_back_to_default():
    assert load_drop_config({"Chance": "nan"}).chance_pct == 1.0


def test_chance_is_clamped():
    assert load_drop_config({"Chance": "-5"}).chance_pct == 0.0
    assert load_drop_config({"Chance": "250"}).chance_pct == 100.0
    assert load_drop_config({"Chance": math.inf}).chance_pct == 100.0


def test_zero_entries_rewrite_to_defaults():
    config = load_drop_config({"NpcEntry": 0, "ItemEntry": "0"})
    assert config.npc_entry == DEFAULT_NPC_ENTRY
    assert config.item_entry == DEFAULT_ITEM_ENTRY


def test_normalize_applies_defaults_and_clamp():
    config = normalize(DropConfig(chance_pct=400.0, npc_entry=0))
    assert config.chance_pct == 100.0
    assert config.npc_entry == DEFAULT_NPC_ENTRY


def test_options_from_environment():
    environ = {"ONCE_DROP_CHANCE": "100", "ONCE_DROP_ALLOW_REPEAT": "1", "UNRELATED": "x"}
    options = drop_gate_options(environ)
    assert options == {"Chance": "100", "AllowRepeat": "1"}

    config = load_drop_config(options)
    assert config.chance_pct == 100.0
    assert config.allow_repeat is True

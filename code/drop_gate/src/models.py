"""
OnceDrop Drop Gate Domain Types
Actors, killed entities, loot containers and the gate record snapshot
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class GateState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    GRANTED = "granted"


@dataclass(frozen=True)
class Actor:
    """A player taking part in a kill or collecting loot."""
    name: str
    guid: Optional[str] = None


@dataclass(frozen=True)
class KilledEntity:
    """The creature that died; `entry` is its template id."""
    entry: int
    guid: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class LootSource:
    """Where a collected item came from (a corpse or a game object)."""
    entry: int
    guid: Optional[str] = None
    kind: str = "creature"
    name: Optional[str] = None


@dataclass
class LootItem:
    item_entry: int
    count: int = 1


@dataclass
class LootContainer:
    """Lootable contents of a corpse, including quest-only items."""
    items: List[LootItem] = field(default_factory=list)
    quest_items: List[LootItem] = field(default_factory=list)

    def has_item(self, item_entry: int) -> bool:
        return any(it.item_entry == item_entry for it in self.items) or any(
            it.item_entry == item_entry for it in self.quest_items
        )

    def add_item(self, item_entry: int, count: int = 1) -> LootItem:
        item = LootItem(item_entry=item_entry, count=count)
        self.items.append(item)
        return item

    def count_of(self, item_entry: int) -> int:
        return sum(it.count for it in self.items + self.quest_items if it.item_entry == item_entry)


@dataclass(frozen=True)
class GateRecord:
    """Snapshot of one persisted gate row."""
    key: str
    granted: bool
    granted_at: int = 0
    last_actor_name: Optional[str] = None

    @classmethod
    def from_model(cls, model) -> "GateRecord":
        return cls(
            key=model.keyname,
            granted=bool(model.dropped),
            granted_at=int(model.last_drop_time or 0),
            last_actor_name=model.last_killer
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

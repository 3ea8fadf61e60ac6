"""
OnceDrop Drop Gate Service
Once-per-server reward drop: decides on kill, reconciles on loot.

Key responsibilities:
- (Re)initialize on config load: ensure the gate row, optional reset, cache reload
- Kill phase: gate check, duplicate-loot guard, roll, place one reward, persist grant
- Loot phase: announce the collection and stamp loot metadata
- Never let an exception reach the host event dispatcher
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from config.settings import GATE_KEY
from drop_gate.src.announcer import Announcer, NameResolver, StaticNameResolver, UNKNOWN_SOURCE
from drop_gate.src.drop_config import DropConfig, normalize
from drop_gate.src.gate_cache import GateCache
from drop_gate.src.gate_store import GateStore
from drop_gate.src.models import Actor, GateState, KilledEntity, LootContainer, LootSource
from drop_gate.src.roll_engine import RollEngine

logger = logging.getLogger(__name__)


def _epoch_seconds() -> int:
    return int(time.time())


class DropGateService:
    """
    Drop Gate Service - the once-only grant gate.

    Owns the gate cache and the current config snapshot. The host calls
    on_config_loaded / on_entity_killed / on_item_collected from its own
    worker threads.
    """

    def __init__(
        self,
        store: GateStore,
        announcer: Optional[Announcer] = None,
        name_resolver: Optional[NameResolver] = None,
        roll_engine: Optional[RollEngine] = None,
        cache: Optional[GateCache] = None,
        clock: Callable[[], int] = _epoch_seconds,
        gate_key: str = GATE_KEY
    ):
        self.store = store
        self.announcer = announcer or Announcer()
        self.name_resolver = name_resolver or StaticNameResolver()
        self.roll_engine = roll_engine or RollEngine()
        self.cache = cache or GateCache()
        self.clock = clock
        self.gate_key = gate_key
        self._config: Optional[DropConfig] = None
        # Guards the kill-phase check-then-act and config reloads.
        self._lock = threading.RLock()

    @property
    def config(self) -> Optional[DropConfig]:
        return self._config

    @property
    def state(self) -> GateState:
        if self._config is None or not self.cache.loaded:
            return GateState.UNINITIALIZED
        return GateState.GRANTED if self.cache.is_granted() else GateState.READY

    # =========================================================================
    # Config Load
    # =========================================================================
    def on_config_loaded(self, config: DropConfig, is_reload: bool = False) -> GateState:
        """Install a new config snapshot and re-run initialization as on startup."""
        try:
            with self._lock:
                # Re-derived from the store below; stays unloaded if that fails.
                self.cache.clear()
                config = normalize(config)
                self._config = config

                if not self.store.ensure_initialized(self.gate_key):
                    logger.warning(f"Gate record {self.gate_key} could not be ensured")

                if config.reset_on_startup:
                    if self.store.reset(self.gate_key):
                        logger.info("ResetOnStartup=1 -> cleared once-per-server memory.")
                    else:
                        logger.error("ResetOnStartup=1 but the gate record could not be reset")

                self.cache.set(self.store.load(self.gate_key))

                npc_name = self._template_name(config.npc_entry) or "Unknown"
                logger.info(
                    f"{'Reloaded' if is_reload else 'Loaded'} drop gate config: "
                    f"Enable={int(config.enable)} NpcEntry={config.npc_entry}({npc_name}) "
                    f"ItemEntry={config.item_entry} Chance={config.chance_pct:.3f}% "
                    f"AllowRepeat={int(config.allow_repeat)} ResetOnStartup={int(config.reset_on_startup)} "
                    f"AlreadyDropped={int(self.cache.is_granted())}"
                )
        except Exception:
            logger.exception("Drop gate initialization failed")
        return self.state

    # =========================================================================
    # Kill Phase
    # =========================================================================
    def on_entity_killed(
        self,
        actor: Optional[Actor],
        killed: Optional[KilledEntity],
        container: Optional[LootContainer]
    ) -> bool:
        """Returns True when the reward was placed into the container."""
        try:
            return self._handle_kill(actor, killed, container)
        except Exception:
            logger.exception("Drop gate kill handling failed")
            return False

    def _handle_kill(self, actor, killed, container) -> bool:
        if actor is None or killed is None or container is None:
            return False

        with self._lock:
            config = self._config
            if config is None or not config.enable or not self.cache.loaded:
                return False

            if killed.entry != config.npc_entry:
                return False

            if not config.allow_repeat and self.cache.is_granted():
                return False

            # Same corpse reported twice.
            if container.has_item(config.item_entry):
                return False

            if not self.roll_engine.roll(config.chance_pct):
                return False

            container.add_item(config.item_entry, 1)

            persisted = self.store.record_grant(
                self.gate_key, actor.name, self.clock(), allow_repeat=config.allow_repeat
            )
            if not persisted:
                logger.error(
                    f"Grant of item {config.item_entry} to {actor.name} was not persisted; "
                    f"stored gate state lags the cache until the next successful write"
                )

            if not config.allow_repeat:
                self.cache.mark_granted()

            logger.info(
                f"Added item {config.item_entry} to {killed.name or killed.entry}'s corpse loot"
                f"{' (AllowRepeat=1)' if config.allow_repeat else ''}."
            )
            return True

    # =========================================================================
    # Loot Phase
    # =========================================================================
    def on_item_collected(
        self,
        actor: Optional[Actor],
        item_entry: int,
        source: Optional[LootSource] = None
    ) -> Optional[str]:
        """Announce a collected reward. Returns the announcement text, or None."""
        try:
            return self._handle_collect(actor, item_entry, source)
        except Exception:
            logger.exception("Drop gate loot handling failed")
            return None

    def _handle_collect(self, actor, item_entry, source) -> Optional[str]:
        config = self._config
        if config is None or not config.enable:
            return None

        if item_entry != config.item_entry:
            return None

        actor_name = actor.name if actor else None
        source_name = self._source_name(source, config)
        message = self.announcer.announce(actor_name, source_name, config.item_name)

        if not self.store.record_loot_metadata(self.gate_key, actor_name, self.clock()):
            logger.error(f"Loot metadata for {actor_name} was not persisted")

        logger.info(f"{actor_name or 'Someone'} collected item {item_entry} from {source_name}")
        return message

    # =========================================================================
    # Name Resolution
    # =========================================================================
    def _template_name(self, entry: int) -> Optional[str]:
        try:
            return self.name_resolver.resolve_template_name(entry)
        except Exception as e:
            logger.warning(f"Template name lookup failed for entry {entry}: {e}")
            return None

    def _source_name(self, source: Optional[LootSource], config: DropConfig) -> str:
        if source is not None:
            try:
                name = self.name_resolver.resolve_display_name(source)
                if name:
                    return name
            except Exception as e:
                logger.warning(f"Display name lookup failed for {source}: {e}")

        return self._template_name(config.npc_entry) or UNKNOWN_SOURCE

    # =========================================================================
    # Status
    # =========================================================================
    def get_status(self) -> Dict[str, Any]:
        record = self.store.get_record(self.gate_key)
        return {
            "gate_key": self.gate_key,
            "state": self.state.value,
            "config": self._config.to_dict() if self._config else None,
            "record": record.to_dict() if record else None
        }

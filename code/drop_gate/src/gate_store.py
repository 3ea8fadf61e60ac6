"""
OnceDrop Gate Store
Durable record of whether the reward has ever been granted, when and to whom.

Key responsibilities:
- Create the gate row if absent (never overwrite existing state)
- Read the granted flag (fail-open: read errors mean "not granted")
- Record kill-phase grants and loot-phase metadata
- Explicit reset

Every write runs under a per-key lock around its read-modify-write.
Storage errors never leave this module; writes report them as False.
"""
import logging
import threading
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kernel.src.db_session import DatabaseManager
from kernel.src.models import OnceDropRecord
from drop_gate.src.models import GateRecord

logger = logging.getLogger(__name__)

MAX_ACTOR_NAME_LENGTH = 63
_UNSAFE_CHARS = {"'", '"'}


def sanitize_actor_name(name: Optional[str]) -> Optional[str]:
    """Truncate to 63 characters and replace quotes/control characters with '_'."""
    if not name:
        return None
    name = name[:MAX_ACTOR_NAME_LENGTH]
    return "".join("_" if ch in _UNSAFE_CHARS or not ch.isprintable() else ch for ch in name)


class GateStore:
    """Gate persistence over the ORM"""

    def __init__(self, db: DatabaseManager):
        self.db = db
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _key_lock(self, key: str) -> threading.Lock:
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    @staticmethod
    def _locked_row(session: Session, key: str) -> OnceDropRecord:
        model = session.execute(
            select(OnceDropRecord)
            .where(OnceDropRecord.keyname == key)
            .with_for_update()
        ).scalar_one_or_none()

        if model is None:
            # Row vanished underneath us; recreate it before writing.
            logger.warning(f"Gate record {key} missing during write, recreating")
            model = OnceDropRecord(keyname=key, dropped=False, last_drop_time=0, last_killer=None)
            session.add(model)
        return model

    # =========================================================================
    # Initialization
    # =========================================================================
    def ensure_initialized(self, key: str) -> bool:
        """Create the schema and the gate row if absent. Idempotent."""
        with self._key_lock(key):
            try:
                self.db.ensure_schema()
                with self.db.session_scope() as session:
                    if session.get(OnceDropRecord, key) is None:
                        session.add(OnceDropRecord(
                            keyname=key,
                            dropped=False,
                            last_drop_time=0,
                            last_killer=None
                        ))
                        logger.info(f"Created gate record {key}")
                return True
            except IntegrityError:
                # Another writer inserted it first.
                logger.info(f"Gate record {key} already exists")
                return True
            except SQLAlchemyError as e:
                logger.error(f"Failed to initialize gate record {key}: {e}")
                return False

    # =========================================================================
    # Reads
    # =========================================================================
    def load(self, key: str) -> bool:
        """Return the granted flag; any failure reads as not granted."""
        try:
            with self.db.session_scope() as session:
                model = session.get(OnceDropRecord, key)
                if model is None:
                    logger.warning(f"Gate record {key} not found, treating as not granted")
                    return False
                return bool(model.dropped)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read gate record {key}, treating as not granted: {e}")
            return False

    def get_record(self, key: str) -> Optional[GateRecord]:
        try:
            with self.db.session_scope() as session:
                model = session.get(OnceDropRecord, key)
                return GateRecord.from_model(model) if model else None
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read gate record {key}: {e}")
            return None

    # =========================================================================
    # Writes
    # =========================================================================
    def reset(self, key: str) -> bool:
        """Clear the granted flag, timestamp and actor."""
        with self._key_lock(key):
            try:
                with self.db.session_scope() as session:
                    model = self._locked_row(session, key)
                    model.dropped = False
                    model.last_drop_time = 0
                    model.last_killer = None
                logger.info(f"Gate record {key} reset")
                return True
            except SQLAlchemyError as e:
                logger.error(f"Failed to reset gate record {key}: {e}")
                return False

    def record_grant(self, key: str, actor_name: Optional[str], timestamp: int, allow_repeat: bool = False) -> bool:
        """
        Persist a kill-phase grant.

        Sets granted=True (never back to False) and stamps time/actor.
        In repeat mode the granted flag is left as it is and only the
        time/actor metadata moves.
        """
        name = sanitize_actor_name(actor_name)
        with self._key_lock(key):
            try:
                with self.db.session_scope() as session:
                    model = self._locked_row(session, key)
                    if not allow_repeat:
                        model.dropped = True
                    model.last_drop_time = int(timestamp)
                    model.last_killer = name
                return True
            except SQLAlchemyError as e:
                logger.error(f"Failed to record grant for {key}: {e}")
                return False

    def record_loot_metadata(self, key: str, actor_name: Optional[str], timestamp: int) -> bool:
        """Stamp time/actor for a loot-phase collection without touching granted."""
        name = sanitize_actor_name(actor_name)
        with self._key_lock(key):
            try:
                with self.db.session_scope() as session:
                    model = self._locked_row(session, key)
                    model.last_drop_time = int(timestamp)
                    model.last_killer = name
                return True
            except SQLAlchemyError as e:
                logger.error(f"Failed to record loot metadata for {key}: {e}")
                return False

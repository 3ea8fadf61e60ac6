"""
OnceDrop Announcer
Formats the server-wide drop announcement and hands it to a broadcast channel.
Broadcasting is fire-and-forget: channel failures are logged, never raised.
"""
import logging
from typing import Mapping, Optional, Protocol

from drop_gate.src.models import LootSource

logger = logging.getLogger(__name__)

UNKNOWN_ACTOR = "Someone"
UNKNOWN_SOURCE = "their foe"

ANNOUNCEMENT_TEMPLATE = "{actor} has defeated {source} and claimed the legendary {item}!"


class BroadcastChannel(Protocol):
    def send_server_wide_message(self, text: str) -> None:
        ...


class NameResolver(Protocol):
    def resolve_display_name(self, source: LootSource) -> Optional[str]:
        ...

    def resolve_template_name(self, entry: int) -> Optional[str]:
        ...


class LoggingBroadcastChannel:
    """Channel that only writes announcements to the log."""

    def send_server_wide_message(self, text: str) -> None:
        logger.info(f"[broadcast] {text}")


class StaticNameResolver:
    """Creature/object names from a fixed entry -> name table."""

    def __init__(self, names: Optional[Mapping[int, str]] = None):
        self._names = dict(names or {})

    def resolve_display_name(self, source: LootSource) -> Optional[str]:
        if source.name:
            return source.name
        return self._names.get(source.entry)

    def resolve_template_name(self, entry: int) -> Optional[str]:
        return self._names.get(entry)


def format_announcement(actor_name: Optional[str], source_name: Optional[str], item_name: str) -> str:
    return ANNOUNCEMENT_TEMPLATE.format(
        actor=actor_name or UNKNOWN_ACTOR,
        source=source_name or UNKNOWN_SOURCE,
        item=item_name
    )


class Announcer:
    """Builds and emits drop announcements."""

    def __init__(self, channel: Optional[BroadcastChannel] = None):
        self.channel = channel or LoggingBroadcastChannel()

    def announce(self, actor_name: Optional[str], source_name: Optional[str], item_name: str) -> str:
        message = format_announcement(actor_name, source_name, item_name)
        try:
            self.channel.send_server_wide_message(message)
        except Exception as e:
            logger.warning(f"Broadcast failed for announcement {message!r}: {e}")
        return message

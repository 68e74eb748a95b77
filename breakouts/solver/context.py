"""
Per-run scheduling state.

Provides the SchedulingContext dataclass that holds the pool of sessions
being scheduled and the occupancy views the search reads and updates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..conflicts import meets_in_parallel_with, meets_in_room
from ..models import Meeting, Project, Room, Session, Slot

if TYPE_CHECKING:
    from ..conflicts import PlenarySettings
    from ..meetings import MeetingCache


@dataclass
class SchedulingContext:
    """
    Shared state for one scheduling run.

    The occupancy views only ever grow: a placed session is appended to the
    slot and room it now uses so that later sessions see it.
    """

    project: Project

    # Shuffled pool of schedulable sessions
    sessions: list[Session]

    plenary: PlenarySettings
    cache: MeetingCache

    # slot_usage[(date, start)] = sessions meeting at that time
    slot_usage: dict[tuple[str, str], list[Session]] = field(default_factory=dict)
    # room_usage[room name] = sessions meeting in that room
    room_usage: dict[str, list[Session]] = field(default_factory=dict)

    processed: set[int] = field(default_factory=set)
    default_capacity: int = 30

    def build_usage(self) -> None:
        """Compute occupancy views from the sessions' current meetings."""
        self.slot_usage = {
            (slot.date, slot.start): [
                s
                for s in self.sessions
                if meets_in_parallel_with(s, Meeting(day=slot.date, slot=slot.start), self.project, self.cache)
            ]
            for slot in self.project.slots
        }
        self.room_usage = {
            room.name: [s for s in self.sessions if meets_in_room(s, room.name, self.project, self.cache)]
            for room in self.project.rooms
        }

    def sessions_at(self, slot: Slot) -> list[Session]:
        return self.slot_usage.setdefault((slot.date, slot.start), [])

    def sessions_in(self, room: Room) -> list[Session]:
        return self.room_usage.setdefault(room.name, [])

    def capacity_of(self, room: Room) -> int:
        return room.effective_capacity(self.default_capacity)

    def slot_position(self, slot: Slot) -> int:
        return self.project.slots.index(slot)

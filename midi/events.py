# midi/events.py
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

class MidiFormat(Enum):
    SINGLE_TRACK = 0
    PARALLEL = 1     # tracks play simultaneously
    SEQUENTIAL = 2

@dataclass(frozen=True)
class Header:
    format: MidiFormat
    track_count: int
    ticks_per_quarter: Optional[int]    # None for SMPTE timing

    @property
    def is_metrical(self) -> bool:
        return self.ticks_per_quarter is not None

@dataclass(frozen=True)
class MetaEvent:
    type: str                           # mido meta type name, e.g. "track_name"
    text: bytes = b""                   # raw, undecoded
    values: Tuple[int, ...] = ()
    data: bytes = b""

@dataclass(frozen=True)
class ChannelMessage:
    type: str                           # "note_on", "pitchwheel", ...
    channel: int
    values: Tuple[int, ...] = ()        # payload in MIDICSV column order

@dataclass(frozen=True)
class SystemExclusive:
    data: bytes                         # after the leading F0, closing F7 included

@dataclass(frozen=True)
class OtherEvent:
    type: str

Event = Union[MetaEvent, ChannelMessage, SystemExclusive, OtherEvent]

@dataclass(frozen=True)
class TrackEvent:
    delta: int                          # ticks since the previous event in the track
    event: Event

Track = List[TrackEvent]

# midi/source.py
import io
import logging
from typing import Dict, List, Protocol, Tuple

import mido

from config import SourceConfig
from errors import SourceParseError
from midi.events import (
    ChannelMessage, Event, Header, MetaEvent, MidiFormat, OtherEvent,
    SystemExclusive, Track, TrackEvent,
)

log = logging.getLogger(__name__)

# mido decodes meta text with this charset; encoding back gives the raw bytes
_RAW_CHARSET = "latin1"

SYSEX_END = b"\xf7"

_TEXT_ATTR = {
    "text": "text",
    "copyright": "text",
    "lyrics": "text",
    "marker": "text",
    "cue_marker": "text",
    "track_name": "name",
    "instrument_name": "name",
}

_MAJOR_KEYS = ["Cb", "Gb", "Db", "Ab", "Eb", "Bb", "F", "C", "G", "D", "A", "E", "B", "F#", "C#"]
_MINOR_KEYS = ["Abm", "Ebm", "Bbm", "Fm", "Cm", "Gm", "Dm", "Am", "Em", "Bm", "F#m", "C#m", "G#m", "D#m", "A#m"]

# key name -> (sharps/flats, minor flag)
KEY_SIGNATURES: Dict[str, Tuple[int, int]] = {}
for _sf, (_maj, _min) in enumerate(zip(_MAJOR_KEYS, _MINOR_KEYS), start=-7):
    KEY_SIGNATURES[_maj] = (_sf, 0)
    KEY_SIGNATURES[_min] = (_sf, 1)

_CHANNEL_TYPES = {
    "note_off", "note_on", "polytouch", "control_change",
    "program_change", "aftertouch", "pitchwheel",
}

_PARSE_ERRORS = (OSError, EOFError, ValueError, KeyError, IndexError, mido.KeySignatureError)


class MidiSource(Protocol):
    """Decodes a Standard MIDI File buffer into a header and ordered tracks."""
    def parse(self, data: bytes) -> Tuple[Header, List[Track]]:
        ...


def _meta_event(msg) -> MetaEvent:
    t = msg.type
    if t in _TEXT_ATTR:
        return MetaEvent(t, text=getattr(msg, _TEXT_ATTR[t]).encode(_RAW_CHARSET))
    if t == "sequence_number":
        return MetaEvent(t, values=(msg.number,))
    if t == "midi_port":
        return MetaEvent(t, values=(msg.port,))
    if t == "time_signature":
        # mido hands back the denominator itself; MIDICSV wants its power of two
        power = msg.denominator.bit_length() - 1
        return MetaEvent(t, values=(msg.numerator, power, msg.clocks_per_click,
                                    msg.notated_32nd_notes_per_beat))
    if t == "key_signature":
        return MetaEvent(t, values=KEY_SIGNATURES[msg.key])
    if t == "set_tempo":
        return MetaEvent(t, values=(msg.tempo,))
    if t == "smpte_offset":
        return MetaEvent(t, values=(msg.hours, msg.minutes, msg.seconds, msg.frames, msg.sub_frames))
    if t == "sequencer_specific":
        return MetaEvent(t, data=bytes(msg.data))
    if t == "unknown_meta":
        return MetaEvent(t, values=(msg.type_byte,), data=bytes(msg.data))
    return MetaEvent(t)


def _channel_message(msg) -> ChannelMessage:
    t = msg.type
    if t in ("note_off", "note_on"):
        values = (msg.note, msg.velocity)
    elif t == "polytouch":
        values = (msg.note, msg.value)
    elif t == "control_change":
        values = (msg.control, msg.value)
    elif t == "program_change":
        values = (msg.program,)
    elif t == "aftertouch":
        values = (msg.value,)
    else:
        values = (msg.pitch - mido.MIN_PITCHWHEEL,)   # signed -> unsigned 14-bit
    return ChannelMessage(t, msg.channel, values)


def convert_message(msg) -> Event:
    if msg.is_meta:
        return _meta_event(msg)
    if msg.type in _CHANNEL_TYPES:
        return _channel_message(msg)
    if msg.type == "sysex":
        # mido drops the closing F7 that MIDICSV counts and prints
        return SystemExclusive(bytes(msg.data) + SYSEX_END)
    return OtherEvent(msg.type)


def read_header(mid: mido.MidiFile) -> Header:
    tpb = mid.ticks_per_beat & 0xFFFF
    # top bit set: SMPTE frames/ticks instead of pulses per quarter
    ticks = None if tpb & 0x8000 else tpb
    return Header(format=MidiFormat(mid.type), track_count=len(mid.tracks), ticks_per_quarter=ticks)


class MidoSource:
    """
    mido reads F7 escape packets as sysex too: one whose payload holds only
    data bytes comes out as System_exclusive, and one carrying a status byte
    fails the whole parse with SourceParseError.
    """
    def __init__(self, cfg: SourceConfig):
        self.cfg = cfg

    def parse(self, data: bytes) -> Tuple[Header, List[Track]]:
        try:
            mid = mido.MidiFile(file=io.BytesIO(data), clip=self.cfg.clip, charset=_RAW_CHARSET)
            header = read_header(mid)
            tracks: List[Track] = [
                [TrackEvent(msg.time, convert_message(msg)) for msg in track]
                for track in mid.tracks
            ]
        except _PARSE_ERRORS as e:
            raise SourceParseError(f"not a readable MIDI file: {e}") from e
        log.debug("parsed MIDI: format=%s tracks=%d ppq=%s",
                  header.format.value, header.track_count, header.ticks_per_quarter)
        return header, tracks

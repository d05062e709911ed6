# ========================= midicsv/translator.py =========================
"""MIDI track events -> MIDICSV records.

Each record is a list of strings: track, time, type keyword, then the
type-specific fields. Tracks are numbered from 1; track 0 holds the file
header and trailer.
"""
import logging
from typing import Iterable, Iterator, List

from errors import TextDecodingError
from midi.events import (
    ChannelMessage, Event, Header, MetaEvent, SystemExclusive, TrackEvent,
)

log = logging.getLogger(__name__)

Record = List[str]

MIN_FIELDS = 3

TEXT_KEYWORDS = {
    "track_name": "Title_t",
    "copyright": "Copyright_t",
    "instrument_name": "Instrument_name_t",
    "marker": "Marker_t",
    "cue_marker": "Cue_point_t",
    "lyrics": "Lyric_t",
    "text": "Text_t",
}

# meta events with a fixed list of numbers after the keyword
NUMERIC_META_KEYWORDS = {
    "midi_port": "Text_t",
    "time_signature": "Time_signature_t",
    "set_tempo": "Tempo_t",
    "smpte_offset": "SMPTE_offset",
}

# always written at time 0, whatever the running time is
ZERO_TIME_META = {"sequence_number", "smpte_offset"}

CHANNEL_KEYWORDS = {
    "note_off": "Note_off_c",
    "note_on": "Note_on_c",
    "aftertouch": "Channel_aftertouch_c",
    "polytouch": "Poly_aftertouch_c",
    "control_change": "Control_c",
    "program_change": "Program_c",
    "pitchwheel": "Pitch_bend_c",
}


def header_record(header: Header) -> Record:
    timing = str(header.ticks_per_quarter) if header.is_metrical else "unknown"
    return ["0", "0", "Header", str(header.format.value), str(header.track_count), timing]


def start_track_record(track_num: int) -> Record:
    return [str(track_num), "0", "Start_track"]


def end_track_record(track_num: int, abs_time: int) -> Record:
    return [str(track_num), str(abs_time), "End_track"]


def end_of_file_record() -> Record:
    return ["0", "0", "End_of_file"]


def _byte_fields(data: bytes) -> List[str]:
    return [str(len(data))] + [str(b) for b in data]


def _decode_text(track_num: int, abs_time: int, meta: MetaEvent) -> str:
    try:
        return meta.text.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TextDecodingError(track_num, abs_time, meta.type, str(e)) from e


def _meta_fields(track_num: int, abs_time: int, meta: MetaEvent) -> List[str]:
    t = meta.type
    if t in TEXT_KEYWORDS:
        return [TEXT_KEYWORDS[t], _decode_text(track_num, abs_time, meta)]
    if t == "sequence_number":
        number = meta.values[0] if meta.values else 0
        return ["Sequence_number", str(number)]
    if t in NUMERIC_META_KEYWORDS:
        return [NUMERIC_META_KEYWORDS[t]] + [str(v) for v in meta.values]
    if t == "key_signature":
        key, minor = meta.values
        return ["Key_signature", str(key), "minor" if minor else "major"]
    if t == "sequencer_specific":
        return ["Sequencer_specific"] + _byte_fields(meta.data)
    return []


def translate_event(track_num: int, abs_time: int, event: Event) -> Record:
    """Build the fields for one event at the given running time.

    The result may be shorter than MIN_FIELDS when the event kind has no
    MIDICSV form; callers drop those.
    """
    fields = [str(track_num)]
    if isinstance(event, MetaEvent):
        fields.append("0" if event.type in ZERO_TIME_META else str(abs_time))
        fields.extend(_meta_fields(track_num, abs_time, event))
    elif isinstance(event, ChannelMessage):
        fields.append(str(abs_time))
        if event.type in CHANNEL_KEYWORDS:
            fields.append(CHANNEL_KEYWORDS[event.type])
            fields.append(str(event.channel))
            fields.extend(str(v) for v in event.values)
    elif isinstance(event, SystemExclusive):
        fields.append(str(abs_time))
        fields.append("System_exclusive")
        fields.extend(_byte_fields(event.data))
    else:
        fields.append(str(abs_time))
    return fields


def translate_track(track_num: int, events: Iterable[TrackEvent]) -> Iterator[Record]:
    """Yield the Start_track record, one record per surfaced event, then End_track."""
    yield start_track_record(track_num)
    abs_time = 0
    for te in events:
        abs_time += te.delta
        fields = translate_event(track_num, abs_time, te.event)
        if len(fields) < MIN_FIELDS:
            log.debug("track %d tick %d: dropping %r", track_num, abs_time, te.event)
            continue
        yield fields
    yield end_track_record(track_num, abs_time)

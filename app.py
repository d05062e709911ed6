# app.py
import logging
import sys
from typing import Optional

from config import AppConfig
from errors import InputReadError
from midi.source import MidiSource, MidoSource
from midicsv.sink import CsvSink, RecordSink
from midicsv.translator import end_of_file_record, header_record, translate_track

log = logging.getLogger(__name__)

def read_input(path: str) -> bytes:
    """Read the whole MIDI file; "-" reads stdin."""
    try:
        if path == "-":
            return sys.stdin.buffer.read()
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise InputReadError(f"cannot read {path}: {e}") from e

class App:
    def __init__(self, cfg: AppConfig, source: Optional[MidiSource] = None):
        self.cfg = cfg
        self.source: MidiSource = source if source is not None else MidoSource(cfg.source)

    def convert(self, data: bytes, sink: RecordSink) -> int:
        """Write one complete MIDICSV document for `data` into `sink`.

        Returns the number of records written. Output is streamed, so a
        failure part way through leaves a truncated document behind.
        """
        header, tracks = self.source.parse(data)
        count = 0

        sink.write_record(header_record(header)); count += 1
        for track_num, track in enumerate(tracks, start=1):
            for record in translate_track(track_num, track):
                sink.write_record(record); count += 1
        sink.write_record(end_of_file_record()); count += 1

        sink.flush()
        log.info("wrote %d records for %d tracks", count, len(tracks))
        return count

    def convert_file(self, path: str, stream) -> int:
        data = read_input(path)
        log.info("converting %s (%d bytes)", path, len(data))
        return self.convert(data, CsvSink(stream, self.cfg.csv))

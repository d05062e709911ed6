# midicsv/sink.py
import csv
from typing import Protocol, Sequence, TextIO

from config import CsvConfig
from errors import SinkWriteError


class RecordSink(Protocol):
    def write_record(self, fields: Sequence[str]) -> None:
        ...

    def flush(self) -> None:
        ...


class CsvSink:
    """
    Streams MIDICSV records to a text stream, one row per record.
    Rows have varying lengths; fields are quoted only when they contain the
    delimiter, the quote char or a line break.
    """
    def __init__(self, stream: TextIO, cfg: CsvConfig):
        self.stream = stream
        self.writer = csv.writer(
            stream,
            delimiter=cfg.delimiter,
            quotechar=cfg.quotechar,
            lineterminator=cfg.lineterminator,
            quoting=csv.QUOTE_MINIMAL,
        )
        self.records_written = 0

    def write_record(self, fields: Sequence[str]) -> None:
        try:
            self.writer.writerow(fields)
        except OSError as e:
            raise SinkWriteError(f"write failed after {self.records_written} records: {e}") from e
        self.records_written += 1

    def flush(self) -> None:
        try:
            self.stream.flush()
        except OSError as e:
            raise SinkWriteError(f"flush failed: {e}") from e

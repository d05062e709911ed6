import csv
import io

import pytest

from app import App, read_input
from config import AppConfig, CsvConfig
from errors import InputReadError, SinkWriteError, SourceParseError, TextDecodingError
from midi.events import ChannelMessage, Header, MetaEvent, MidiFormat, SystemExclusive, TrackEvent
from midicsv.sink import CsvSink


class FakeSource:
    def __init__(self, header, tracks):
        self.header = header
        self.tracks = tracks
        self.seen = None

    def parse(self, data):
        self.seen = data
        return self.header, self.tracks


class FailingSource:
    def parse(self, data):
        raise SourceParseError("bad header")


class ListSink:
    def __init__(self):
        self.records = []
        self.flushed = False

    def write_record(self, fields):
        self.records.append(list(fields))

    def flush(self):
        self.flushed = True


class BrokenStream(io.StringIO):
    def write(self, s):
        raise BrokenPipeError("pipe closed")


TRACKS = [
    [
        TrackEvent(0, MetaEvent("track_name", text=b"Tempo map")),
        TrackEvent(0, MetaEvent("set_tempo", values=(500000,))),
        TrackEvent(0, MetaEvent("end_of_track")),
    ],
    [
        TrackEvent(0, MetaEvent("sequence_number", values=(1,))),
        TrackEvent(0, ChannelMessage("note_on", 0, (60, 100))),
        TrackEvent(480, ChannelMessage("note_off", 0, (60, 0))),
        TrackEvent(10, SystemExclusive(b"\x7f\x00\x01")),
    ],
    [],
]


def make_app(tracks=TRACKS, header=None):
    header = header or Header(MidiFormat.PARALLEL, len(tracks), 480)
    return App(AppConfig(), source=FakeSource(header, tracks))


def test_document_framing_and_brackets():
    sink = ListSink()
    count = make_app().convert(b"MThd", sink)

    recs = sink.records
    assert count == len(recs)
    assert sink.flushed
    assert recs[0] == ["0", "0", "Header", "1", "3", "480"]
    assert recs[-1] == ["0", "0", "End_of_file"]
    assert all(len(r) >= 3 for r in recs)

    for n in (1, 2, 3):
        mine = [r for r in recs if r[0] == str(n)]
        assert mine[0][2] == "Start_track"
        assert mine[-1][2] == "End_track"
    assert [r[2] for r in recs].count("Start_track") == 3
    assert [r[2] for r in recs].count("End_track") == 3
    assert [r for r in recs if r[0] == "2"][-1] == ["2", "490", "End_track"]
    assert [r for r in recs if r[0] == "3"] == [["3", "0", "Start_track"], ["3", "0", "End_track"]]


def test_convert_writes_expected_csv():
    out = io.StringIO()
    make_app().convert(b"", CsvSink(out, CsvConfig()))
    assert out.getvalue() == (
        "0,0,Header,1,3,480\n"
        "1,0,Start_track\n"
        "1,0,Title_t,Tempo map\n"
        "1,0,Tempo_t,500000\n"
        "1,0,End_track\n"
        "2,0,Start_track\n"
        "2,0,Sequence_number,1\n"
        "2,0,Note_on_c,0,60,100\n"
        "2,480,Note_off_c,0,60,0\n"
        "2,490,System_exclusive,3,127,0,1\n"
        "2,490,End_track\n"
        "3,0,Start_track\n"
        "3,0,End_track\n"
        "0,0,End_of_file\n"
    )


def test_text_with_delimiters_is_quoted():
    tracks = [[TrackEvent(0, MetaEvent("text", text=b'Hello, "world"'))]]
    out = io.StringIO()
    make_app(tracks).convert(b"", CsvSink(out, CsvConfig()))
    line = out.getvalue().splitlines()[2]
    assert line == '1,0,Text_t,"Hello, ""world"""'
    assert next(csv.reader([line])) == ["1", "0", "Text_t", 'Hello, "world"']


def test_crlf_terminator():
    out = io.StringIO()
    make_app([[]]).convert(b"", CsvSink(out, CsvConfig(lineterminator="\r\n")))
    assert out.getvalue() == "0,0,Header,1,1,480\r\n1,0,Start_track\r\n1,0,End_track\r\n0,0,End_of_file\r\n"


def test_parse_failure_writes_nothing():
    sink = ListSink()
    with pytest.raises(SourceParseError):
        App(AppConfig(), source=FailingSource()).convert(b"junk", sink)
    assert sink.records == []


def test_decoding_failure_leaves_truncated_output():
    tracks = [[TrackEvent(0, ChannelMessage("note_on", 0, (60, 1))),
               TrackEvent(5, MetaEvent("marker", text=b"\xc3"))]]
    sink = ListSink()
    with pytest.raises(TextDecodingError):
        make_app(tracks).convert(b"", sink)
    assert sink.records[-1] == ["1", "0", "Note_on_c", "0", "60", "1"]
    assert not sink.flushed


def test_sink_write_failure():
    with pytest.raises(SinkWriteError):
        make_app().convert(b"", CsvSink(BrokenStream(), CsvConfig()))


def test_convert_file_reads_path(tmp_path):
    path = tmp_path / "song.mid"
    path.write_bytes(b"raw-bytes")
    app = make_app([[]])
    out = io.StringIO()
    assert app.convert_file(str(path), out) == 4
    assert app.source.seen == b"raw-bytes"


def test_read_input_missing_file(tmp_path):
    with pytest.raises(InputReadError):
        read_input(str(tmp_path / "missing.mid"))

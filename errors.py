# errors.py


class Midi2CsvError(Exception):
    """Base class for every failure that aborts a conversion run."""


class InputReadError(Midi2CsvError):
    pass


class SourceParseError(Midi2CsvError):
    """The input bytes are not a MIDI file the parser accepts."""


class TextDecodingError(Midi2CsvError):
    def __init__(self, track: int, time: int, meta_type: str, reason: str):
        super().__init__(f"track {track} at tick {time}: {meta_type} text is not valid UTF-8 ({reason})")
        self.track = track
        self.time = time
        self.meta_type = meta_type


class SinkWriteError(Midi2CsvError):
    pass

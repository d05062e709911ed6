# main.py
import argparse
import io
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from app import App
from config import AppConfig, CsvConfig, LogConfig, SourceConfig
from errors import Midi2CsvError, SinkWriteError, TextDecodingError
from utils.crashlog import log_exception, setup_crashlog

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

log = logging.getLogger("midi2csv")

def _init_logging(cfg: LogConfig):
    root = logging.getLogger()
    if not root.handlers:
        console = logging.StreamHandler()
        console.setLevel(cfg.level)
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(console)
    root.setLevel(cfg.level)

    if cfg.log_dir:
        setup_crashlog(cfg.log_dir)
        fh = RotatingFileHandler(os.path.join(cfg.log_dir, "midi2csv.log"),
                                 maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(fh)
        # the file gets everything; the console keeps its own level
        root.setLevel(logging.DEBUG)
    return root

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="midi2csv", description="Convert a Standard MIDI File to MIDICSV.")
    ap.add_argument("input", help="MIDI file to read, or - for stdin")
    ap.add_argument("-o", "--output", default=None, help="CSV file to write (default: stdout)")
    ap.add_argument("--crlf", action="store_true", help="end records with CR LF")
    ap.add_argument("--clip", action="store_true", help="clip out-of-range data bytes instead of failing")
    ap.add_argument("--log-level", default="WARNING",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    ap.add_argument("--log-dir", default=None, help="write a rotating log and error reports here")
    return ap

def config_from_args(args) -> AppConfig:
    return AppConfig(
        source=SourceConfig(clip=args.clip),
        csv=CsvConfig(lineterminator="\r\n" if args.crlf else "\n"),
        log=LogConfig(level=args.log_level, log_dir=args.log_dir),
    )

def run(cfg: AppConfig, input_path: str, output_path: Optional[str]) -> int:
    app = App(cfg)
    if output_path is None:
        # bytes straight to stdout so the configured terminator is not translated
        sys.stdout.flush()
        out = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", newline="", write_through=True)
        try:
            return app.convert_file(input_path, out)
        finally:
            out.detach()
    try:
        out = open(output_path, "w", encoding="utf-8", newline="")
    except OSError as e:
        raise SinkWriteError(f"cannot open {output_path}: {e}") from e
    with out:
        return app.convert_file(input_path, out)

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)
    _init_logging(cfg.log)

    try:
        run(cfg, args.input, args.output)
    except Midi2CsvError as e:
        log.debug("conversion failed", exc_info=True)
        report = log_exception("convert", e)
        print(f"midi2csv: error: {e}", file=sys.stderr)
        if isinstance(e, (TextDecodingError, SinkWriteError)):
            # records were already streamed out
            print("midi2csv: output is incomplete", file=sys.stderr)
        if report:
            print(f"midi2csv: details in {report}", file=sys.stderr)
        return 1
    return 0

if __name__ == '__main__':
    sys.exit(main())

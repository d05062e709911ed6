# utils/crashlog.py
import os, sys, datetime, traceback
from typing import Optional

_log_root: Optional[str] = None

def _new_log_path(prefix: str) -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return os.path.join(_log_root, f"{prefix}-{stamp}.txt")

def _write_report(prefix: str, title: str, exc_type, exc, tb) -> str:
    # line 1: when, line 2: what, then the traceback
    path = _new_log_path(prefix)
    with open(path, "w", encoding="utf-8") as out:
        out.write(f"midi2csv {prefix} report {datetime.datetime.now().isoformat(timespec='seconds')}\n")
        out.write(f"{title}: {exc_type.__name__}: {exc}\n\n")
        out.writelines(traceback.format_exception(exc_type, exc, tb))
    return path

def setup_crashlog(directory: str) -> str:
    """Send crash and error reports to `directory` from now on."""
    global _log_root
    os.makedirs(directory, exist_ok=True)
    _log_root = directory

    def _hook(exc_type, exc, tb):
        try:
            _write_report("crash", "uncaught", exc_type, exc, tb)
        finally:
            sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook
    return directory

def log_exception(title: str, exc: BaseException) -> Optional[str]:
    """Write an error report; returns its path, or None when no log dir is set."""
    if _log_root is None:
        return None
    return _write_report("error", title, type(exc), exc, exc.__traceback__)

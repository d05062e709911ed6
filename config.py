# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class SourceConfig:
    clip: bool = False              # clip data bytes > 127 instead of failing

@dataclass
class CsvConfig:
    delimiter: str = ","
    quotechar: str = '"'
    lineterminator: str = "\n"

@dataclass
class LogConfig:
    level: str = "WARNING"
    log_dir: Optional[str] = None   # rotating log + crash reports when set

@dataclass
class AppConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    csv: CsvConfig = field(default_factory=CsvConfig)
    log: LogConfig = field(default_factory=LogConfig)

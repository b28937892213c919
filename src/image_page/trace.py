"""Level-filtered tracing and crash dumps.

A Tracer is built from the ``debug`` section of the config and passed to the
code that needs it. Each traced function gets a Function handle; a message is
written only when its level is at or below the tracer, package and function
levels. Dumps are timestamped directories under ``dump_dir`` holding a
``dump.json`` summary and the call stack.
"""

import inspect
import json
import logging
import re
import shutil
import sys
import time
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

from image_page.version import version

ERROR = 10
WARNING = 20
INFO = 30
API = 40
VERBOSE = 50

_LEVEL_NAMES = {
    "error": ERROR,
    "warning": WARNING,
    "info": INFO,
    "api": API,
    "verbose": VERBOSE,
}

LOG_FORMAT = "page %(asctime)s %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"
DUMP_NAME_FORMAT = "%Y-%m-%d_%H-%M-%S.%f"


def parse_level(value: int | str) -> int:
    """Accept a numeric level or one of error/warning/info/api/verbose."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid trace level: {value!r}")
    if isinstance(value, int):
        return value
    key = str(value).strip().lower()
    if key in _LEVEL_NAMES:
        return _LEVEL_NAMES[key]
    if key.isdigit():
        return int(key)
    raise ValueError(
        f"Invalid trace level: {value!r}. Use a number or one of {', '.join(_LEVEL_NAMES)}."
    )


@dataclass
class TraceConfig:
    """Settings for a Tracer."""

    level: int = INFO
    default_package_level: int = INFO
    default_function_level: int = INFO
    package_levels: dict[str, int] = field(default_factory=dict)
    function_levels: dict[str, int] = field(default_factory=dict)
    dump_dir: Path = Path("dumps")
    log_file: Path = Path("text.log")


@dataclass
class DumpInfo:
    """Summary written to dump.json."""

    timestamp: str
    time_unix: int
    time_unix_nano: int
    package: str
    function: str
    caller: str
    filename: str
    line: int
    version: str
    message: str


class Dump:
    """A dump directory. Write failures are kept on ``error`` rather than raised."""

    def __init__(self, directory: Path, error: OSError | None = None) -> None:
        self.directory = directory
        self.error = error

    def __repr__(self) -> str:
        return f"Dump({str(self.directory)!r})"

    def add_bytes(self, title: str, data: bytes) -> "Dump":
        """Add a file to the dump. Does nothing if the dump already failed."""
        if self.error is not None:
            return self
        try:
            (self.directory / title).write_bytes(data)
        except OSError as e:
            self.error = e
        return self

    def get_info(self) -> DumpInfo:
        """Read dump.json back. Raises OSError or ValueError if it is missing or invalid."""
        data = json.loads((self.directory / "dump.json").read_text(encoding="utf-8"))
        return DumpInfo(**data)

    def remove(self) -> None:
        shutil.rmtree(self.directory)


class DumpMark:
    """The set of dumps present at one moment, for finding ones created since."""

    def __init__(self, dump_dir: Path) -> None:
        self._dump_dir = dump_dir
        self.error: OSError | None = None
        self._seen: set[str] = set()
        try:
            self._seen = {p.name for p in dump_dir.iterdir() if p.is_dir()}
        except OSError as e:
            self.error = e

    def list_new_dumps(self) -> list[Dump]:
        if self.error is not None:
            raise self.error
        return [
            Dump(p)
            for p in sorted(self._dump_dir.iterdir())
            if p.is_dir() and p.name not in self._seen
        ]


class Package:
    """A traced package with its own level."""

    def __init__(self, tracer: "Tracer", name: str, level: int) -> None:
        self.tracer = tracer
        self.name = name
        self.level = level


class Function:
    """A traced function within a package."""

    def __init__(self, package: Package, name: str, level: int) -> None:
        self.package = package
        self.name = name
        self.own_level = level

    @property
    def tracer(self) -> "Tracer":
        return self.package.tracer

    def level(self) -> int:
        """Effective level: the lowest of tracer, package and function levels."""
        return min(self.tracer.config.level, self.package.level, self.own_level)

    def enabled(self, level: int) -> bool:
        return level <= self.level()

    def log(self, level: int, fmt: str, *args: object) -> None:
        """Write '<package>.<function> <message>' if level passes every filter."""
        if not self.enabled(level):
            return
        message = fmt % args if args else fmt
        self.tracer.write(f"{self.package.name}.{self.name} {message}")

    def error(self, fmt: str, *args: object) -> None:
        self.log(ERROR, fmt, *args)

    def warn(self, fmt: str, *args: object) -> None:
        self.log(WARNING, fmt, *args)

    def info(self, fmt: str, *args: object) -> None:
        self.log(INFO, fmt, *args)

    def api(self, fmt: str, *args: object) -> None:
        self.log(API, fmt, *args)

    def verbose(self, fmt: str, *args: object) -> None:
        self.log(VERBOSE, fmt, *args)

    def trace_request(self, method: str, uri: str, headers: dict[str, str | list[str]]) -> None:
        """Trace a request line and its headers at API level."""
        if not self.enabled(API):
            return
        self.api("%s %s", method, uri)
        for name, values in headers.items():
            if isinstance(values, str):
                values = [values]
            for value in values:
                self.api("%s: %s", name.lower(), value)

    def trace_request_body(self, data: bytes | str) -> None:
        """Trace a request body on one line, masking any JSON password field."""
        if not self.enabled(API):
            return
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        text = re.sub(r"\s+", " ", data)
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            masked = {
                k: "********" if k.lower() == "password" else v
                for k, v in parsed.items()
            }
            text = json.dumps(masked)
        self.api("request body: %s", text)

    def dump(self, fmt: str, *args: object) -> Dump:
        """Write a dump directory describing the caller and the current stack."""
        message = fmt % args if args else fmt
        now = datetime.now()
        directory = self.tracer.config.dump_dir / now.strftime(DUMP_NAME_FORMAT)
        self.error("DUMP: writing dump:[%s]", directory)

        caller = inspect.currentframe().f_back
        info = DumpInfo(
            timestamp=now.strftime(DUMP_NAME_FORMAT),
            time_unix=int(now.timestamp()),
            time_unix_nano=time.time_ns(),
            package=self.package.name,
            function=self.name,
            caller=caller.f_code.co_name if caller else "",
            filename=caller.f_code.co_filename if caller else "",
            line=caller.f_lineno if caller else 0,
            version=version(),
            message=message,
        )
        stack = "".join(traceback.format_stack(caller))
        exc = sys.exc_info()
        if exc[0] is not None:
            stack += "\n" + "".join(traceback.format_exception(*exc))

        dump = Dump(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            dump.error = e
            return dump
        dump.add_bytes("dump.json", json.dumps(asdict(info), indent=2).encode("utf-8"))
        dump.add_bytes("callstack.txt", stack.encode("utf-8"))
        return dump


class Tracer:
    """Owns the trace log file and the dump directory."""

    def __init__(self, config: TraceConfig | None = None) -> None:
        self.config = config or TraceConfig()
        self._logger = logging.getLogger(f"{__name__}.{id(self)}")
        self._logger.propagate = False
        self._logger.setLevel(logging.INFO)
        self._handler: logging.Handler | None = None

    def open(self) -> "Tracer":
        """Create the dump directory and start appending to the log file."""
        self.config.dump_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self.config.log_file, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        self._logger.addHandler(handler)
        self._handler = handler
        return self

    def close(self) -> None:
        if self._handler is None:
            return
        self._logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None

    def __enter__(self) -> "Tracer":
        return self.open()

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._handler is not None

    def write(self, line: str) -> None:
        """Append a line to the log. Lines written while closed are dropped."""
        if self._handler is not None:
            self._logger.info(line)

    def package(self, name: str) -> Package:
        level = self.config.package_levels.get(name, self.config.default_package_level)
        return Package(self, name, level)

    def function(self, package: Package, name: str) -> Function:
        key = f"{package.name}_{name}"
        level = self.config.function_levels.get(key, self.config.default_function_level)
        return Function(package, name, level)

    def mark(self) -> DumpMark:
        return DumpMark(self.config.dump_dir)

    def list_dumps(self) -> list[Dump]:
        """Return every dump under dump_dir, oldest first. Raises OSError if unreadable."""
        return [Dump(p) for p in sorted(self.config.dump_dir.iterdir()) if p.is_dir()]

    def clear_dumps(self) -> int:
        """Remove every dump. Returns how many were removed."""
        dumps = self.list_dumps()
        for dump in dumps:
            dump.remove()
        return len(dumps)

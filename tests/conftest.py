"""
Test configuration and fixtures for mysql server supervisor tests.
"""
import json
import os
import shutil
import sys
import tempfile
import textwrap
import threading
from pathlib import Path

import pytest

from src.frameworks_drivers.config import Config, ServerConfiguration


class RecordingTranscript:
    """Trace sink keeping every formatted line, safe to use from relay threads."""

    def __init__(self):
        self.records: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def debug(self, msg, *args):
        self._record("debug", msg, args)

    def info(self, msg, *args):
        self._record("info", msg, args)

    def _record(self, level, msg, args):
        with self._lock:
            self.records.append((level, msg % args if args else msg))

    @property
    def console_lines(self) -> list[str]:
        with self._lock:
            return [text[len(">>  "):] for _, text in self.records if text.startswith(">>  ")]

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return [text for _, text in self.records]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def transcript():
    return RecordingTranscript()


@pytest.fixture
def fake_mysqld(temp_dir):
    """
    Factory writing an executable that stands in for mysqld at <temp_dir>/mysqld.

    In --bootstrap mode it captures stdin next to the data directory (or ignores it
    when read_stdin is false) and exits with exit_code; otherwise it prints two console lines and sleeps until signalled.
    argv is captured in both modes.
    """

    def _write(exit_code: int = 0, ignore_sigterm: bool = False, read_stdin: bool = True) -> Path:
        path = temp_dir / "mysqld"
        body = f"""
            import signal
            import sys
            import time

            if {ignore_sigterm!r}:
                signal.signal(signal.SIGTERM, signal.SIG_IGN)

            with open({str(temp_dir / 'argv.capture')!r}, "w") as f:
                f.write("\\n".join(sys.argv))

            if "--bootstrap" in sys.argv:
                data = sys.stdin.buffer.read() if {read_stdin!r} else b""
                with open({str(temp_dir / 'stdin.capture')!r}, "wb") as f:
                    f.write(data)
                sys.stderr.write("bootstrap read %d bytes\\n" % len(data))
                sys.stderr.flush()
                sys.exit({exit_code})

            sys.stderr.write("mysqld: ready for connections.\\n")
            sys.stderr.write("Version: fake\\n")
            sys.stderr.flush()
            while True:
                time.sleep(0.05)
        """
        path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
        os.chmod(path, 0o755)
        return path

    return _write


@pytest.fixture
def sample_config_data(temp_dir):
    """Sample configuration data pointing at an empty data directory."""
    data_dir = temp_dir / "data"
    tmp_dir = temp_dir / "tmp"
    data_dir.mkdir()
    tmp_dir.mkdir()
    return {
        "mysql": {
            "generic": {
                "executable_path": str(temp_dir / "mysqld"),
                "package_base_path": "/opt/mysql",
                "charsets_path": "/opt/mysql/share/charsets",
                "plugins_path": "/opt/mysql/lib/plugin",
                "databases_path": str(data_dir),
                "temporary_path": str(tmp_dir),
                "socket_path": str(temp_dir / "mysqld.sock"),
                "pid_path": str(temp_dir / "mysqld.pid"),
            },
            "sql_endpoint_ip": "127.0.0.1",
            "sql_endpoint_port": 3306,
            "sql_administrator_password": "secret",
            "sql_initialization_script_paths": [],
        },
        "supervisor": {"queue_size": 4},
        "server": {"host": "127.0.0.1", "port": 8000},
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Create a temporary config file."""
    config_path = temp_dir / "config.json"
    with open(config_path, "w") as f:
        json.dump(sample_config_data, f, indent=2)
    return str(config_path)


@pytest.fixture
def sample_config(sample_config_data):
    """Create a Config instance from sample data."""
    return Config(**sample_config_data)


@pytest.fixture
def server_configuration(sample_config) -> ServerConfiguration:
    return sample_config.mysql


@pytest.fixture
def with_scripts(temp_dir, sample_config_data):
    """Factory returning a ServerConfiguration whose initialization scripts hold the given contents."""

    def _build(*contents: bytes) -> ServerConfiguration:
        paths = []
        for i, content in enumerate(contents):
            path = temp_dir / f"init-{i}.sql"
            path.write_bytes(content)
            paths.append(str(path))
        data = dict(sample_config_data["mysql"], sql_initialization_script_paths=paths)
        return ServerConfiguration(**data)

    return _build

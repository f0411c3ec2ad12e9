import os
from unittest.mock import patch

import pytest

from src.frameworks_drivers.script_streamer import ScriptStreamer
from src.shared.errors import ScriptReadError


def read_all(fd: int) -> bytes:
    chunks = []
    with os.fdopen(fd, "rb") as f:
        while True:
            chunk = f.read(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestPrepareBlocks:
    def test_blocks_in_order(self, with_scripts):
        configuration = with_scripts(b"CREATE TABLE a(x INT);", b"CREATE TABLE b(y INT);\n")
        assert ScriptStreamer.prepare_blocks(configuration) == [
            b"CREATE DATABASE mysql;\n",
            b"USE mysql;",
            b"CREATE TABLE a(x INT);",
            b"CREATE TABLE b(y INT);\n",
            b"UPDATE mysql.user SET password = PASSWORD ('secret') WHERE user = 'root';",
        ]

    def test_no_scripts(self, server_configuration):
        blocks = ScriptStreamer.prepare_blocks(server_configuration)
        assert len(blocks) == 3

    def test_missing_script_fails_before_pipe(self, with_scripts, temp_dir):
        configuration = with_scripts(b"SELECT 1;")
        os.remove(temp_dir / "init-0.sql")
        with patch("os.pipe") as mock_pipe:
            with pytest.raises(ScriptReadError) as exc_info:
                ScriptStreamer.from_configuration(configuration)
        mock_pipe.assert_not_called()
        assert exc_info.value.path.name == "init-0.sql"

    def test_short_read_is_rejected(self, with_scripts):
        configuration = with_scripts(b"SELECT 1;")
        with patch("os.fstat") as mock_fstat:
            mock_fstat.return_value.st_size = 100
            with pytest.raises(ScriptReadError):
                ScriptStreamer.prepare_blocks(configuration)


class TestStreaming:
    def test_streams_exact_concatenation(self, with_scripts):
        configuration = with_scripts(b"CREATE TABLE t(x INT);")
        streamer = ScriptStreamer.from_configuration(configuration)
        read_fd = os.dup(streamer.read_fd)
        streamer.start()
        data = read_all(read_fd)
        assert streamer.wait(timeout=10) is None
        assert data == (
            b"CREATE DATABASE mysql;\nUSE mysql;CREATE TABLE t(x INT);"
            b"UPDATE mysql.user SET password = PASSWORD ('secret') WHERE user = 'root';"
        )

    def test_large_script_is_streamed(self, with_scripts):
        big = b"INSERT INTO t VALUES (1);\n" * 20000
        streamer = ScriptStreamer.from_configuration(with_scripts(big))
        read_fd = os.dup(streamer.read_fd)
        streamer.start()
        data = read_all(read_fd)
        streamer.wait(timeout=10)
        assert big in data
        assert streamer.written == len(data)

    def test_reader_gone_reports_error(self, with_scripts):
        big = b"-- filler\n" * 100000
        streamer = ScriptStreamer.from_configuration(with_scripts(big))
        streamer.start()
        error = streamer.wait(timeout=10)
        assert isinstance(error, BrokenPipeError)

    def test_wait_without_start_releases_pipe(self, server_configuration):
        streamer = ScriptStreamer.from_configuration(server_configuration)
        assert streamer.wait() is None
        with pytest.raises(ValueError):
            streamer.read_fd

"""Tests for verification command execution."""

from __future__ import annotations

import sys

import pytest

from driftguard.terminal import ProcessResult, SubprocessExecutor

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands")


class TestProcessResult:
    def test_success_property(self):
        result = ProcessResult(
            command="true", exit_code=0, stdout="", stderr="", truncated=False, status="ok", duration_ms=1.0
        )
        assert result.success is True
        assert "ok" in repr(result)

    def test_timeout_is_not_success(self):
        result = ProcessResult(
            command="sleep 9",
            exit_code=None,
            stdout="",
            stderr="",
            truncated=False,
            status="timeout",
            duration_ms=1000.0,
        )
        assert result.success is False
        assert "timeout" in repr(result)


class TestSubprocessExecutor:
    @pytest.fixture
    def executor(self, tmp_path):
        return SubprocessExecutor(default_cwd=str(tmp_path))

    @pytest.mark.asyncio
    async def test_echo(self, executor):
        result = await executor.execute("echo hello")
        assert result.success
        assert result.stdout.strip() == "hello"
        assert result.status == "ok"
        assert result.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_failure_is_data(self, executor):
        result = await executor.execute("echo broken >&2; exit 3")
        assert not result.success
        assert result.exit_code == 3
        assert result.status == "error"
        assert "broken" in result.stderr

    @pytest.mark.asyncio
    async def test_command_not_found(self, executor):
        result = await executor.execute("nonexistent_command_xyz")
        assert not result.success
        assert result.exit_code == 127

    @pytest.mark.asyncio
    async def test_timeout(self, executor):
        result = await executor.execute("sleep 5", timeout=0.2)
        assert result.status == "timeout"
        assert result.exit_code is None
        assert not result.success

    @pytest.mark.asyncio
    async def test_output_truncated(self, executor):
        result = await executor.execute("head -c 5000 /dev/zero | tr '\\0' 'a'", output_limit=100)
        assert result.truncated
        assert result.stdout.startswith("a" * 100)
        assert result.stdout.endswith("(output truncated)")

    @pytest.mark.asyncio
    async def test_cwd(self, executor, tmp_path):
        sub = tmp_path / "sub"
        sub.mkdir()
        result = await executor.execute("pwd", cwd=str(sub))
        assert result.stdout.strip().endswith("sub")

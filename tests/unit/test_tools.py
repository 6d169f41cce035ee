"""Tests for external tool discovery and execution."""

from pathlib import Path

import pytest

from texfab.config import ToolConfig
from texfab.errors import ToolFailedError, ToolNotFoundError, ToolTimeoutError
from texfab.tools import ToolSpec, env_var_for, find_tool, run_tool, tool_version


class TestFindTool:
    """Tests for find_tool lookup order."""

    def test_env_var_name(self) -> None:
        assert env_var_for("blender") == "TEXFAB_BLENDER"
        assert env_var_for("nv-compress") == "TEXFAB_NV_COMPRESS"

    def test_explicit_path(self, fake_tool) -> None:
        path = fake_tool("cmft")
        assert find_tool("cmft", path, environ={}) == path

    def test_explicit_beats_environment(self, fake_tool) -> None:
        explicit = fake_tool("cmft")
        other = fake_tool("cmft-other")
        assert find_tool("cmft", explicit, environ={"TEXFAB_CMFT": str(other)}) == explicit

    def test_missing_explicit_falls_back_to_environment(self, fake_tool, tmp_path: Path) -> None:
        from_env = fake_tool("cmft")
        found = find_tool("cmft", tmp_path / "nope", environ={"TEXFAB_CMFT": str(from_env)})
        assert found == from_env

    def test_candidates(self, fake_tool, tmp_path: Path) -> None:
        installed = fake_tool("nvcompress")
        candidates = [str(tmp_path / "missing"), str(installed)]
        assert find_tool("nvcompress", candidates=candidates, environ={}) == installed

    def test_not_found(self) -> None:
        assert find_tool("texfab-no-such-tool", candidates=[], environ={}) is None

    def test_resolve_raises(self) -> None:
        config = ToolConfig(name="texfab-no-such-tool")
        with pytest.raises(ToolNotFoundError, match="texfab-no-such-tool not found"):
            ToolSpec.resolve(config, environ={})

    def test_resolve_dry_run_uses_bare_name(self) -> None:
        config = ToolConfig(name="texfab-no-such-tool", timeout_seconds=9)
        spec = ToolSpec.resolve(config, environ={}, dry_run=True)
        assert spec == ToolSpec("texfab-no-such-tool", Path("texfab-no-such-tool"), 9)

    def test_resolve_keeps_settings(self, fake_tool) -> None:
        path = fake_tool("gh")
        spec = ToolSpec.resolve(ToolConfig("gh", str(path), 5, {"GH_HOST": "example.com"}))
        assert spec == ToolSpec("gh", path, 5, {"GH_HOST": "example.com"})


class TestRunTool:
    """Tests for run_tool."""

    def test_success(self, fake_tool, tmp_path: Path) -> None:
        spec = ToolSpec("echoer", fake_tool("echoer", 'echo "hello $1"'))
        run = run_tool(spec, ["world"], cwd=tmp_path)

        assert run.exit_code == 0
        assert run.stdout == "hello world\n"
        assert run.command == [str(spec.path), "world"]
        assert not run.dry_run

    def test_runs_in_cwd(self, fake_tool, tmp_path: Path) -> None:
        spec = ToolSpec("toucher", fake_tool("toucher", ": > made.txt"))
        target = tmp_path / "work"
        target.mkdir()
        run_tool(spec, [], cwd=target)
        assert (target / "made.txt").exists()

    def test_env(self, fake_tool) -> None:
        script = fake_tool("env", 'echo "$TEXFAB_TEST_VALUE"')
        spec = ToolSpec("env", script, env={"TEXFAB_TEST_VALUE": "42"})
        assert run_tool(spec, []).stdout.strip() == "42"

    def test_failure(self, fake_tool) -> None:
        spec = ToolSpec("broken", fake_tool("broken", "echo boom >&2", exit_code=3))
        with pytest.raises(ToolFailedError) as exc_info:
            run_tool(spec, [])

        assert exc_info.value.exit_code == 3
        assert "boom" in exc_info.value.stderr
        assert str(exc_info.value) == "broken failed with exit code 3: boom"

    def test_timeout(self, fake_tool) -> None:
        spec = ToolSpec("slow", fake_tool("slow", "exec sleep 5"), timeout_seconds=1)
        with pytest.raises(ToolTimeoutError, match="slow timed out after 1s"):
            run_tool(spec, [])

    def test_missing_executable(self, tmp_path: Path) -> None:
        spec = ToolSpec("gone", tmp_path / "gone")
        with pytest.raises(ToolNotFoundError):
            run_tool(spec, [])

    def test_dry_run(self, fake_tool, calls) -> None:
        spec = ToolSpec("blender", fake_tool("blender"))
        run = run_tool(spec, ["-b", "scene with space.blend"], dry_run=True)

        assert run.dry_run
        assert run.command_line == f"{spec.path} -b 'scene with space.blend'"
        assert calls() == []

    def test_log_file(self, fake_tool, tmp_path: Path) -> None:
        """Should append stdout and stderr to <log_dir>/<tool>.log."""
        spec = ToolSpec("cmft", fake_tool("cmft", "echo out; echo err >&2"))
        log_dir = tmp_path / "logs"

        run_tool(spec, ["--a"], log_dir=log_dir)
        run_tool(spec, ["--b"], log_dir=log_dir)

        log = (log_dir / "cmft.log").read_text()
        assert log.count("=== COMMAND ===") == 2
        assert "=== STDOUT ===\nout\n" in log
        assert "=== STDERR ===\nerr\n" in log
        assert "--b" in log

    def test_log_written_on_failure(self, fake_tool, tmp_path: Path) -> None:
        spec = ToolSpec("broken", fake_tool("broken", exit_code=1))
        with pytest.raises(ToolFailedError):
            run_tool(spec, [], log_dir=tmp_path)
        assert "=== EXIT CODE ===\n1\n" in (tmp_path / "broken.log").read_text()


class TestToolVersion:
    def test_first_non_empty_line(self, fake_tool) -> None:
        path = fake_tool("blender", 'echo ""; echo "Blender 4.1.0"; echo "build hash"')
        assert tool_version(path) == "Blender 4.1.0"

    def test_falls_back_to_stderr(self, fake_tool) -> None:
        path = fake_tool("cmft", 'echo "cmft 1.2" >&2', exit_code=1)
        assert tool_version(path) == "cmft 1.2"

    def test_missing(self, tmp_path: Path) -> None:
        assert tool_version(tmp_path / "missing") is None


def test_inherits_process_environment(fake_tool, monkeypatch) -> None:
    monkeypatch.setenv("TEXFAB_INHERITED", "yes")
    spec = ToolSpec("env", fake_tool("env", 'echo "$TEXFAB_INHERITED"'))
    assert run_tool(spec, []).stdout.strip() == "yes"

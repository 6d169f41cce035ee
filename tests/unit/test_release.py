"""Tests for CI gating and the publish pipeline."""

from pathlib import Path

import pytest

from texfab import release
from texfab.config import ReleaseConfig
from texfab.release import (
    ReleaseContext,
    changelog_notes,
    changelog_title,
    publish,
    run_checks,
    should_deploy,
)
from texfab.tools import ToolSpec

TAG_PUSH = ReleaseContext(
    event_name="push",
    ref_type="tag",
    ref_name="v1.2.0",
    registry_token="pypi-secret",
    github_token="gh-secret",
)


@pytest.fixture
def fake_python(fake_tool, monkeypatch) -> Path:
    """Stand-in for ``python -m build`` / ``python -m twine``."""
    path = fake_tool(
        "python",
        'if [ "$2" = "build" ]; then\n'
        '  mkdir -p "$4"\n'
        '  : > "$4/texfab-1.2.0.tar.gz"\n'
        '  : > "$4/texfab-1.2.0-py3-none-any.whl"\n'
        "fi\n"
        'if [ "$3" = "upload" ]; then echo "twine-user=$TWINE_USERNAME" >&2; fi',
    )

    def python_spec(release_config: ReleaseConfig, env=None) -> ToolSpec:
        return ToolSpec("python", path, release_config.timeout_seconds, env or {})

    monkeypatch.setattr(release, "_python", python_spec)
    return path


@pytest.fixture
def publish_config(fake_tool, tool_config, tmp_path: Path):
    yaclog = fake_tool(
        "yaclog", 'if [ "$2" = "-mb" ]; then echo "- Added BC5 support"; else echo "1.2.0"; fi'
    )
    gh = fake_tool("gh", f'echo "gh-token=$GH_TOKEN" >> "{tmp_path / "gh-env.log"}"')
    config = tool_config(yaclog=yaclog, gh=gh)
    config.log_dir = tmp_path / "logs"
    return config


class TestShouldDeploy:
    @pytest.mark.parametrize(
        "event,ref_type,expected",
        [
            ("push", "tag", True),
            ("push", "branch", False),
            ("pull_request", "tag", False),
            ("workflow_dispatch", "branch", False),
            ("", "", False),
        ],
    )
    def test_only_tag_pushes(self, event: str, ref_type: str, expected: bool) -> None:
        assert should_deploy(event, ref_type) is expected


class TestReleaseContext:
    def test_from_env(self) -> None:
        context = ReleaseContext.from_env(
            {
                "GITHUB_EVENT_NAME": "push",
                "GITHUB_REF_TYPE": "tag",
                "GITHUB_REF_NAME": "v0.3.0",
                "PYPI_TOKEN": "secret",
                "GH_TOKEN": "",
            }
        )
        assert context.is_tag_push
        assert context.ref_name == "v0.3.0"
        assert context.registry_token == "secret"
        assert context.github_token is None

    def test_empty_env(self) -> None:
        context = ReleaseContext.from_env({})
        assert not context.is_tag_push
        assert context.registry_token is None


class TestRunChecks:
    """Tests for the check step of the test job."""

    def test_check_runs_before_tests(self, fake_tool, tool_config, calls, tmp_path: Path) -> None:
        ruff = fake_tool("ruff")
        pytest_bin = fake_tool("pytest")
        config = tool_config()
        config.release.check_command = f"{ruff} check ."
        config.release.test_command = f"{pytest_bin} -q"

        result = run_checks(config, cwd=tmp_path)

        assert result.success
        assert calls() == ["ruff check .", "pytest -q"]
        assert result.commands == [f"{ruff} check .", f"{pytest_bin} -q"]

    def test_failed_check_skips_tests(self, fake_tool, tool_config, calls, tmp_path: Path) -> None:
        ruff = fake_tool("ruff", "echo 'E501 line too long' >&2", exit_code=1)
        pytest_bin = fake_tool("pytest")
        config = tool_config()
        config.release.check_command = f"{ruff} check ."
        config.release.test_command = str(pytest_bin)

        result = run_checks(config, cwd=tmp_path)

        assert not result.success
        assert calls() == ["ruff check ."]
        assert "E501" in result.errors[0]

    def test_failed_tests(self, fake_tool, tool_config, tmp_path: Path) -> None:
        config = tool_config()
        config.release.check_command = str(fake_tool("ruff"))
        config.release.test_command = str(fake_tool("pytest", exit_code=2))

        result = run_checks(config, cwd=tmp_path)
        assert not result.success
        assert "exit code 2" in result.errors[0]

    def test_missing_check_tool(self, tool_config, tmp_path: Path) -> None:
        config = tool_config()
        config.release.check_command = "texfab-no-such-linter check ."

        result = run_checks(config, cwd=tmp_path)
        assert not result.success
        assert "texfab-no-such-linter not found" in result.errors[0]

    def test_dry_run(self, fake_tool, tool_config, calls, tmp_path: Path) -> None:
        config = tool_config()
        config.release.check_command = str(fake_tool("ruff"))
        config.release.test_command = str(fake_tool("pytest"))

        result = run_checks(config, cwd=tmp_path, dry_run=True)
        assert result.success
        assert result.dry_run
        assert len(result.commands) == 2
        assert calls() == []

    def test_dry_run_without_tools(self, tool_config, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("PATH", str(tmp_path / "empty"))
        config = tool_config()

        result = run_checks(config, cwd=tmp_path, dry_run=True)

        assert result.success, result.errors
        assert result.commands == ["ruff check .", "pytest"]


class TestChangelog:
    def test_notes_and_title(self, publish_config, tmp_path: Path) -> None:
        assert changelog_notes(publish_config, tmp_path) == "- Added BC5 support"
        assert changelog_title(publish_config, tmp_path) == "Version 1.2.0"


class TestPublish:
    """Tests for the deploy job."""

    def test_refuses_branch_push(self, publish_config, calls, tmp_path: Path) -> None:
        context = ReleaseContext("push", "branch", "main", "pypi-secret", "gh-secret")

        result = publish(context, publish_config, cwd=tmp_path)

        assert not result.success
        assert result.errors == [
            "Refusing to publish: not a tag push (event=push, ref_type=branch)"
        ]
        assert calls() == []

    def test_refuses_branch_push_in_dry_run(self, publish_config, tmp_path: Path) -> None:
        result = publish(ReleaseContext("push", "branch"), publish_config, tmp_path, dry_run=True)
        assert not result.success

    def test_missing_secrets(self, publish_config, calls, tmp_path: Path) -> None:
        context = ReleaseContext("push", "tag", "v1.2.0")

        result = publish(context, publish_config, cwd=tmp_path)

        assert not result.success
        assert result.errors == ["Missing secrets: PYPI_TOKEN, GH_TOKEN"]
        assert calls() == []

    def test_publish(self, fake_python, publish_config, calls, tmp_path: Path) -> None:
        """Should build, upload, then create the GitHub release."""
        result = publish(TAG_PUSH, publish_config, cwd=tmp_path)

        assert result.success, result.errors
        dist = tmp_path / "dist"
        assert result.artifacts == [
            str(dist / "texfab-1.2.0-py3-none-any.whl"),
            str(dist / "texfab-1.2.0.tar.gz"),
        ]

        logged = calls()
        assert logged[0] == f"python -m build --outdir {dist}"
        assert logged[1].startswith("python -m twine upload --non-interactive --repository pypi")
        assert logged[2:4] == ["yaclog show -mb", "yaclog show -n"]
        assert logged[4] == (
            "gh release create v1.2.0 --notes - Added BC5 support --title Version 1.2.0"
        )
        assert (tmp_path / "gh-env.log").read_text() == "gh-token=gh-secret\n"
        assert "twine-user=__token__" in (publish_config.log_dir / "python.log").read_text()

    def test_stale_artifacts_not_uploaded(
        self, fake_python, publish_config, calls, tmp_path: Path
    ) -> None:
        """Should upload only what this build produced."""
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "texfab-1.1.0.tar.gz").write_bytes(b"old")

        result = publish(TAG_PUSH, publish_config, cwd=tmp_path)

        assert result.success, result.errors
        assert not (dist / "texfab-1.1.0.tar.gz").exists()
        assert all("1.1.0" not in artifact for artifact in result.artifacts)
        assert "texfab-1.1.0" not in calls()[1]

    def test_dry_run(self, fake_python, publish_config, calls, tmp_path: Path) -> None:
        """Should validate with twine check and only record the gh command."""
        context = ReleaseContext("push", "tag", "v1.2.0")

        result = publish(context, publish_config, cwd=tmp_path, dry_run=True)

        assert result.success, result.errors
        logged = calls()
        assert logged[1].startswith("python -m twine check ")
        assert not any(line.startswith("gh ") for line in logged)
        assert result.commands[-1].endswith("--title 'Version 1.2.0'")

    def test_upload_failure_stops_release(
        self, fake_tool, publish_config, calls, monkeypatch, tmp_path: Path
    ) -> None:
        failing = fake_tool(
            "python",
            'if [ "$3" = "upload" ]; then echo "HTTPError: 403 Forbidden" >&2; exit 1; fi',
        )
        monkeypatch.setattr(
            release, "_python", lambda cfg, env=None: ToolSpec("python", failing, 60, env or {})
        )

        result = publish(TAG_PUSH, publish_config, cwd=tmp_path)

        assert not result.success
        assert "403 Forbidden" in result.errors[0]
        assert not any(line.startswith("gh ") for line in calls())

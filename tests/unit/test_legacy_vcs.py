"""Tests for the legacy-script fallback and the git collaborator.

``subprocess.run`` is patched except in :class:`TestGitRepositoryOnDisk`, which
commits into a throwaway repository.
"""

from __future__ import annotations

import shutil
import subprocess
from unittest.mock import patch

import pytest
from conftest import make_config

from session_closer.errors import ErrorCode, LegacyScriptError
from session_closer.legacy import python_executable, run_legacy_script
from session_closer.vcs import NOTHING_TO_COMMIT, GitRepository

SCRIPT = "Automation/scripts/create_daily_task_session_from_summary.py"


def completed(returncode=0, stdout="", stderr="", args=("x",)):
    return subprocess.CompletedProcess(list(args), returncode, stdout, stderr)


@pytest.fixture
def script(tmp_path):
    path = tmp_path / SCRIPT
    path.parent.mkdir(parents=True)
    path.write_text("print('ok')\n")
    return path


# ---------------------------------------------------------------------------
# Legacy script
# ---------------------------------------------------------------------------

class TestLegacyScript:
    def test_skipped_when_script_missing(self, tmp_path):
        with patch("session_closer.legacy.subprocess.run") as run:
            assert run_legacy_script(make_config(), tmp_path) is False
        run.assert_not_called()

    def test_skipped_without_token(self, tmp_path, script):
        with patch("session_closer.legacy.subprocess.run") as run:
            assert run_legacy_script(make_config(token=""), tmp_path) is False
        run.assert_not_called()

    def test_runs_with_token_in_environment(self, tmp_path, script):
        with patch("session_closer.legacy.subprocess.run", return_value=completed()) as run:
            assert run_legacy_script(make_config(), tmp_path, environ={"PATH": "/bin"}) is True

        args, kwargs = run.call_args
        assert args[0] == [python_executable(), str(script)]
        assert kwargs["env"] == {"PATH": "/bin", "NOTION_API_KEY": "test-token-1234"}
        assert kwargs["timeout"] == 30.0
        assert kwargs["cwd"] == tmp_path

    def test_configured_workspace_used(self, tmp_path):
        workspace = tmp_path / "ws"
        (workspace / SCRIPT).parent.mkdir(parents=True)
        (workspace / SCRIPT).write_text("")
        config = make_config(workspace=str(workspace))
        with patch("session_closer.legacy.subprocess.run", return_value=completed()) as run:
            assert run_legacy_script(config, tmp_path / "project", environ={}) is True
        assert run.call_args.kwargs["cwd"] == workspace

    def test_non_zero_exit(self, tmp_path, script):
        with patch(
            "session_closer.legacy.subprocess.run",
            return_value=completed(returncode=2, stderr="boom\n"),
        ):
            with pytest.raises(LegacyScriptError) as exc_info:
                run_legacy_script(make_config(), tmp_path, environ={})
        err = exc_info.value
        assert err.code == ErrorCode.LEGACY_SCRIPT_ERROR
        assert err.context["returncode"] == 2
        assert err.context["stderr"] == "boom"

    def test_timeout(self, tmp_path, script):
        with patch(
            "session_closer.legacy.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="python3", timeout=30),
        ):
            with pytest.raises(LegacyScriptError, match="timed out"):
                run_legacy_script(make_config(), tmp_path, environ={})

    def test_python_executable(self):
        with patch("session_closer.legacy.sys.platform", "win32"):
            assert python_executable() == "python"
        with patch("session_closer.legacy.sys.platform", "linux"):
            assert python_executable() == "python3"


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------

class TestGitRepository:
    def test_is_repo(self, tmp_path):
        repo = GitRepository(tmp_path)
        assert not repo.is_repo()
        (tmp_path / ".git").mkdir()
        assert repo.is_repo()

    def test_changed_files(self, tmp_path):
        with patch("session_closer.vcs.subprocess.run", return_value=completed(stdout="a.py\nsrc/b.py\n")) as run:
            assert GitRepository(tmp_path).changed_files() == ["a.py", "src/b.py"]
        assert run.call_args.args[0] == ["git", "diff", "--name-only"]

    def test_changed_files_empty_on_failure(self, tmp_path):
        with patch("session_closer.vcs.subprocess.run", return_value=completed(returncode=128)):
            assert GitRepository(tmp_path).changed_files() == []
        with patch("session_closer.vcs.subprocess.run", side_effect=FileNotFoundError("git")):
            assert GitRepository(tmp_path).changed_files() == []

    def test_commit(self, tmp_path):
        results = [completed(), completed(stdout="[main abc] feat: x\n")]
        with patch("session_closer.vcs.subprocess.run", side_effect=results) as run:
            assert GitRepository(tmp_path).commit("feat: x") == "feat: x"
        assert [c.args[0] for c in run.call_args_list] == [
            ["git", "add", "-A"],
            ["git", "commit", "-m", "feat: x"],
        ]

    def test_nothing_to_commit(self, tmp_path):
        results = [completed(), completed(returncode=1, stdout="nothing to commit, working tree clean\n")]
        with patch("session_closer.vcs.subprocess.run", side_effect=results):
            assert GitRepository(tmp_path).commit("m") == NOTHING_TO_COMMIT

    def test_commit_failure_raises(self, tmp_path):
        results = [completed(), completed(returncode=1, stderr="fatal: bad\n")]
        with patch("session_closer.vcs.subprocess.run", side_effect=results):
            with pytest.raises(subprocess.CalledProcessError):
                GitRepository(tmp_path).commit("m")


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestGitRepositoryOnDisk:
    @pytest.fixture
    def repo(self, tmp_path, isolated_git):
        subprocess.run(["git", "init", "-q"], cwd=tmp_path, check=True)
        return GitRepository(tmp_path)

    def test_commit_returns_message(self, repo, tmp_path):
        (tmp_path / "f.txt").write_text("x\n")

        assert repo.commit("feat: thing\n\nbody") == "feat: thing\n\nbody"

        log = subprocess.run(
            ["git", "log", "-1", "--format=%s"],
            cwd=tmp_path, capture_output=True, text=True, check=True,
        )
        assert log.stdout.strip() == "feat: thing"

    def test_clean_tree_has_nothing_to_commit(self, repo, tmp_path):
        (tmp_path / "f.txt").write_text("x\n")
        repo.commit("first")
        assert repo.commit("second") == NOTHING_TO_COMMIT

    def test_changed_files_lists_tracked_edits(self, repo, tmp_path):
        (tmp_path / "f.txt").write_text("x\n")
        repo.commit("first")
        (tmp_path / "f.txt").write_text("y\n")
        assert repo.changed_files() == ["f.txt"]

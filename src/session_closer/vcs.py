"""Git collaborator.

Thin wrappers over the ``git`` executable, run synchronously with
:func:`subprocess.run`.  Callers in async code push these onto a worker
thread.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from session_closer.observability import get_logger

log = get_logger("session_closer.vcs")

NOTHING_TO_COMMIT = "No changes to commit"


class GitRepository:
    """Git operations for one working tree."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def is_repo(self) -> bool:
        return (self.root / ".git").exists()

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            ["git", *args],
            cwd=self.root,
            capture_output=True,
            text=True,
            check=False,
        )

    def changed_files(self) -> list[str]:
        """Paths from ``git diff --name-only``; empty when git is unavailable."""
        try:
            result = self._run("diff", "--name-only")
        except OSError as exc:
            log.debug(
                "git diff unavailable",
                extra={"extra_fields": {"op": "git_diff", "error": str(exc)}},
            )
            return []
        if result.returncode != 0:
            return []
        return [line for line in result.stdout.strip().split("\n") if line]

    def commit(self, message: str) -> str:
        """Stage everything and commit.

        Returns
        -------
        str
            The commit message on success, or ``"No changes to commit"``.

        Raises
        ------
        subprocess.CalledProcessError
            If staging or committing fails for any other reason.
        """
        staged = self._run("add", "-A")
        if staged.returncode != 0:
            raise subprocess.CalledProcessError(
                staged.returncode, staged.args, staged.stdout, staged.stderr
            )
        committed = self._run("commit", "-m", message)
        output = committed.stdout + committed.stderr
        if committed.returncode != 0:
            if "nothing to commit" in output:
                return NOTHING_TO_COMMIT
            raise subprocess.CalledProcessError(
                committed.returncode, committed.args, committed.stdout, committed.stderr
            )
        log.info(
            "Committed session changes",
            extra={"extra_fields": {"op": "git_commit", "root": str(self.root)}},
        )
        return message

"""Legacy Notion script fallback.

Older workspaces ship a standalone script that creates the day's session
page from the summary file.  :func:`run_legacy_script` invokes it as a
subprocess when the client path could not record the session.
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path

from session_closer.config import SessionCloserConfig
from session_closer.errors import LegacyScriptError
from session_closer.observability import get_logger

log = get_logger("session_closer.legacy")


def python_executable() -> str:
    return "python" if sys.platform == "win32" else "python3"


def run_legacy_script(
    config: SessionCloserConfig,
    project_root: str | Path,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Run the legacy script from the workspace root.

    Parameters
    ----------
    config:
        Supplies the workspace, the script path, the timeout and the token.
    project_root:
        Used as the workspace when ``config.workspace`` is unset.
    environ:
        Base environment for the child; defaults to :data:`os.environ`.

    Returns
    -------
    bool
        ``True`` if the script ran, ``False`` if it was skipped because the
        script or the token is missing.

    Raises
    ------
    LegacyScriptError
        On a non-zero exit status or a timeout.
    """
    workspace = Path(config.workspace or project_root)
    script = workspace / config.legacy_script
    if not script.is_file():
        log.info(
            "Legacy Notion script not found, skipping",
            extra={"extra_fields": {"op": "legacy_script", "script": str(script)}},
        )
        return False
    if not config.token:
        log.info(
            "Notion API key not found, skipping legacy script",
            extra={"extra_fields": {"op": "legacy_script"}},
        )
        return False

    env = dict(os.environ if environ is None else environ)
    env["NOTION_API_KEY"] = config.token

    try:
        result = subprocess.run(
            [python_executable(), str(script)],
            cwd=workspace,
            env=env,
            capture_output=True,
            text=True,
            timeout=config.legacy_timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise LegacyScriptError(
            message=f"Legacy script timed out after {config.legacy_timeout_seconds}s",
            context={"script": str(script)},
            cause=exc,
        ) from exc
    except OSError as exc:
        raise LegacyScriptError(
            message=f"Legacy script could not be started: {exc}",
            context={"script": str(script)},
            cause=exc,
        ) from exc

    if result.returncode != 0:
        raise LegacyScriptError(
            message=f"Legacy script exited with status {result.returncode}",
            context={
                "script": str(script),
                "returncode": result.returncode,
                "stderr": result.stderr.strip(),
            },
        )
    log.info(
        "Legacy Notion script completed",
        extra={"extra_fields": {"op": "legacy_script", "script": str(script)}},
    )
    return True

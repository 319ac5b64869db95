"""
Command execution. Inspectors of the outside world (nmstatectl) receive an
Executor so tests can substitute canned output for real subprocesses.
"""

import subprocess
from typing import Callable, List, NamedTuple, Optional

from ._util import debug as _debug_fn


class RunResult(NamedTuple):
    stdout: str
    stderr: str
    returncode: int


Executor = Callable[..., RunResult]


def _debug(msg: str) -> None:
    _debug_fn("executor", msg)


def make_executor(timeout: int = 120) -> Executor:
    """Return an Executor that runs commands with subprocess.

    A missing binary is reported as returncode 127, the way a shell would.
    """

    def run(cmd: List[str], cwd: Optional[str] = None) -> RunResult:
        _debug(f"running: {' '.join(cmd)}")
        try:
            r = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=cwd,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            return RunResult(stdout="", stderr=str(exc), returncode=127)
        except subprocess.TimeoutExpired:
            return RunResult(
                stdout="",
                stderr=f"{cmd[0]} timed out after {timeout}s",
                returncode=124,
            )
        return RunResult(stdout=r.stdout, stderr=r.stderr, returncode=r.returncode)

    return run

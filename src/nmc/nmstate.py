"""
nmstate compilation backend.

The generator only needs ``compile(state) -> result``: hand a declarative
network-state document (YAML/JSON text) to nmstate and get back its
``gen_conf`` output, a YAML document mapping backend name to a list of
[filename, content] pairs. Tests pass any object with a compile method.
"""

import os
import tempfile
from typing import Optional, Protocol

from ._util import debug as _debug_fn
from .errors import CompileError
from .executor import Executor, make_executor


def _debug(msg: str) -> None:
    _debug_fn("nmstate", msg)


class Compiler(Protocol):
    def compile(self, state: str) -> str:
        ...


class NmstatectlCompiler:
    """Compile network state with ``nmstatectl gc``."""

    def __init__(self, executor: Optional[Executor] = None, binary: str = "nmstatectl"):
        self._executor = executor or make_executor()
        self._binary = binary

    def compile(self, state: str) -> str:
        # nmstatectl reads the state from a file path.
        fd, path = tempfile.mkstemp(prefix="nmc-", suffix=".yaml")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(state)
            cmd = [self._binary, "gc", path]
            _debug(f"compiling: {' '.join(cmd)}")
            r = self._executor(cmd)
        finally:
            os.unlink(path)

        if r.returncode == 127:
            raise CompileError(f"{self._binary} not found: {r.stderr.strip()}")
        if r.returncode != 0:
            raise CompileError(
                f"generating configuration: {self._binary} exited {r.returncode}: "
                f"{r.stderr.strip()[:800]}"
            )
        return r.stdout

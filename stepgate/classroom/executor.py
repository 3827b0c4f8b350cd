"""
Code execution for runnable sections and code exercises.

Provides:
- CodeExecutor: the async run/evaluate surface the evaluator depends on
- PythonSession: in-process interpreter with one namespace per session

PythonSession is not a security sandbox. It runs learner code in a worker
thread with stdout/stderr captured, and turns open matplotlib figures into a
base64 PNG. There is no timeout and no cancellation.
"""

import asyncio
import base64
import contextlib
import io
import sys
import threading
import traceback
from typing import Any, Optional, Protocol

import matplotlib

from stepgate.errors import ExecutionFailed
from stepgate.schemas import ExecutionResult


class CodeExecutor(Protocol):
    async def run(self, source: str) -> ExecutionResult: ...

    async def evaluate(self, expression: str) -> Any: ...


def _format_error(error: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(error), error)).strip()


class PythonSession:
    """Runs learner code; later runs and evaluations share variables."""

    def __init__(self):
        matplotlib.use("Agg")
        self.namespace: dict[str, Any] = {"__name__": "__main__"}
        self._lock = threading.Lock()

    def reset(self):
        """Drop every variable defined so far."""
        with self._lock:
            self.namespace = {"__name__": "__main__"}

    async def run(self, source: str) -> ExecutionResult:
        """
        Execute `source` and capture its output.

        Raises:
            ExecutionFailed: if the code does not compile or raises
        """
        return await asyncio.to_thread(self._run, source)

    async def evaluate(self, expression: str) -> Any:
        """
        Evaluate an expression against the session namespace.

        Raises:
            ExecutionFailed: if the expression raises
        """
        return await asyncio.to_thread(self._evaluate, expression)

    def _run(self, source: str) -> ExecutionResult:
        stdout, stderr = io.StringIO(), io.StringIO()
        with self._lock:
            self._close_figures()
            try:
                code = compile(source, "<learner>", "exec")
                with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
                    exec(code, self.namespace)
                image = self._capture_figure()
            except (Exception, SystemExit) as e:
                raise ExecutionFailed(_format_error(e)) from e
        return ExecutionResult(
            stdout=stdout.getvalue(),
            stderr=stderr.getvalue(),
            image_base64=image,
        )

    def _evaluate(self, expression: str) -> Any:
        with self._lock:
            try:
                with contextlib.redirect_stdout(io.StringIO()):
                    return eval(compile(expression, "<validate>", "eval"), self.namespace)
            except (Exception, SystemExit) as e:
                raise ExecutionFailed(_format_error(e)) from e

    @staticmethod
    def _close_figures():
        plt = sys.modules.get("matplotlib.pyplot")
        if plt is not None:
            plt.close("all")

    @staticmethod
    def _capture_figure() -> Optional[str]:
        # Only learner code imports pyplot; nothing to capture otherwise
        plt = sys.modules.get("matplotlib.pyplot")
        if plt is None or not plt.get_fignums():
            return None
        buf = io.BytesIO()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight", facecolor="white")
        plt.close("all")
        return base64.b64encode(buf.getvalue()).decode("utf-8")

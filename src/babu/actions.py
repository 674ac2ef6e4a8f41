# actions.py
from __future__ import annotations

import contextlib
import os
import subprocess
import sys
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

# Receives each line of action output (without the trailing newline)
LineSink = Callable[[str], None]

SHELL = "/bin/sh"
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class ActionResult:
    """Exit status and combined output of a met/meet body."""
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@runtime_checkable
class Action(Protocol):
    def run(
        self,
        args: tuple = (),
        *,
        on_line: Optional[LineSink] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ActionResult:
        ...


def _discard(line: str) -> None:
    pass


# ----------------------------------------------------------------------
# Shell commands
# ----------------------------------------------------------------------

class ShellAction:
    """
    Run a command through /bin/sh.

    The dep's args become the positional parameters ($1, $2, ...).
    stdout and stderr are merged and handed to `on_line` as they are
    produced, so long-running commands show progress.
    """

    def __init__(self, command: str):
        self.command = command

    def __repr__(self) -> str:
        return f"ShellAction({self.command!r})"

    def run(
        self,
        args: tuple = (),
        *,
        on_line: Optional[LineSink] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ActionResult:
        sink = on_line or _discard

        run_env = os.environ.copy()
        run_env.update(env or {})

        argv = [SHELL, "-c", self.command, "babu", *[str(a) for a in args]]
        try:
            proc = subprocess.Popen(
                argv,
                env=run_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except FileNotFoundError:
            message = f"{SHELL}: not found"
            sink(message)
            return ActionResult(exit_code=EXIT_NOT_FOUND, output=message + "\n")

        assert proc.stdout is not None
        lines: List[str] = []
        try:
            with proc.stdout:
                for line in proc.stdout:
                    lines.append(line)
                    sink(line.rstrip("\n"))
        except BaseException:
            proc.kill()
            proc.wait()
            raise

        code = proc.wait()
        return ActionResult(exit_code=code, output="".join(lines))


def sh(command: str) -> ShellAction:
    """Shell action helper for Babufiles: met(sh("command -v git"))."""
    return ShellAction(command)


# ----------------------------------------------------------------------
# Python callables
# ----------------------------------------------------------------------

class _OutputCapture:
    """
    Collects what a callable action prints to stdout and stderr, merged in
    write order, and hands each complete line to the sink. Anything the
    sink itself writes goes to the real stream it was aimed at.
    """

    def __init__(self, sink: LineSink):
        self._sink = sink
        self.forwarding = False
        self.lines: List[str] = []
        self.stdout = _CaptureStream(self, sys.stdout)
        self.stderr = _CaptureStream(self, sys.stderr)

    def emit(self, line: str) -> None:
        self.lines.append(line)
        self.forwarding = True
        try:
            self._sink(line)
        finally:
            self.forwarding = False

    def close(self) -> None:
        self.stdout.close_pending()
        self.stderr.close_pending()


class _CaptureStream:
    """File-like stand-in for sys.stdout or sys.stderr."""

    encoding = "utf-8"
    errors = "strict"

    def __init__(self, capture: _OutputCapture, passthrough):
        self._capture = capture
        self._passthrough = passthrough
        self._pending = ""

    def write(self, text: str) -> int:
        if self._capture.forwarding:
            return self._passthrough.write(text)

        self._pending += text
        while "\n" in self._pending:
            line, self._pending = self._pending.split("\n", 1)
            self._capture.emit(line)
        return len(text)

    def flush(self) -> None:
        if self._capture.forwarding:
            self._passthrough.flush()

    def close_pending(self) -> None:
        if self._pending:
            line, self._pending = self._pending, ""
            self._capture.emit(line)

    def isatty(self) -> bool:
        return False


def _status_from(value: Any) -> int:
    if value is None or value is True:
        return 0
    if value is False:
        return 1
    if isinstance(value, int):
        return value
    raise TypeError(f"met/meet callables must return None, a bool or an int, got {value!r}")


class CallableAction:
    """
    Run a Python function as a met/meet body.

    The function gets the dep's args. Returning None/True means success,
    False means failure and an int is used as the exit status. Anything it
    prints is forwarded line by line like shell output.
    """

    def __init__(self, func: Callable[..., Any]):
        self.func = func

    def __repr__(self) -> str:
        return f"CallableAction({getattr(self.func, '__name__', self.func)!r})"

    def run(
        self,
        args: tuple = (),
        *,
        on_line: Optional[LineSink] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ActionResult:
        capture = _OutputCapture(on_line or _discard)

        with contextlib.ExitStack() as stack:
            if env:
                stack.enter_context(_patched_environ(env))
            stack.enter_context(contextlib.redirect_stdout(capture.stdout))
            stack.enter_context(contextlib.redirect_stderr(capture.stderr))
            try:
                code = _status_from(self.func(*args))
            except Exception as e:
                # Raising counts as a failed body
                for line in traceback.format_exception_only(type(e), e):
                    capture.stderr.write(line)
                code = 1
            capture.close()

        output = "".join(line + "\n" for line in capture.lines)
        return ActionResult(exit_code=code, output=output)


@contextlib.contextmanager
def _patched_environ(env: Dict[str, str]):
    saved = {k: os.environ.get(k) for k in env}
    os.environ.update(env)
    try:
        yield
    finally:
        for k, v in saved.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v


# ----------------------------------------------------------------------
# Stubs for bodies the Babufile never defined
# ----------------------------------------------------------------------

class MissingAction:
    """Prints a warning and returns a fixed status."""

    def __init__(self, message: str, exit_code: int):
        self.message = message
        self.exit_code = exit_code

    def __repr__(self) -> str:
        return f"MissingAction({self.message!r}, exit_code={self.exit_code})"

    def run(
        self,
        args: tuple = (),
        *,
        on_line: Optional[LineSink] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ActionResult:
        line = f"warning: {self.message}"
        (on_line or _discard)(line)
        return ActionResult(exit_code=self.exit_code, output=line + "\n")


def missing_met(name: str) -> MissingAction:
    # Fails so that meet gets a chance to run
    return MissingAction(f"no met defined for {name}", exit_code=1)


def missing_meet(name: str) -> MissingAction:
    # Succeeds; the re-test decides whether the dep converged
    return MissingAction(f"no meet defined for {name}", exit_code=0)


def as_action(body: Any) -> Action:
    """Accept a shell string, an Action or a plain callable as a met/meet body."""
    if isinstance(body, str):
        return ShellAction(body)
    if isinstance(body, (ShellAction, CallableAction, MissingAction)):
        return body
    if isinstance(body, Action) and not isinstance(body, type):
        return body
    if callable(body):
        return CallableAction(body)
    raise TypeError(f"Cannot use {body!r} as a met/meet body (expected str, callable or Action)")

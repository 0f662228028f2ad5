"""Uniform subprocess adapter for external scanners.

Scanners such as Semgrep and Gitleaks exit nonzero when they *found*
something, so the exit status alone never decides failure. The captured
stdout is parsed first; only when that parse fails does a nonzero exit
become an error. The genuine failures are: the binary is missing
(NOT_INSTALLED), the run timed out or could not be launched, the output
exceeded its cap, or the output could not be understood.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Sequence

from ..domain.errors import ToolExecutionError, ToolNotInstalledError, ToolParseError
from ..domain.models import Finding, Severity, ToolResult
from .audit_log import TOOL_EXECUTION_FAILED, record_scan_event

_LOG = logging.getLogger(__name__)

Normalizer = Callable[[Any, str], tuple[Finding, ...]]
"""Turns a decoded tool report plus the scan root into common findings."""

_TOOL_SEVERITY: dict[str, Severity] = {
    "critical": Severity.CRITICAL,
    "error": Severity.HIGH,
    "high": Severity.HIGH,
    "warning": Severity.MEDIUM,
    "moderate": Severity.MEDIUM,
    "medium": Severity.MEDIUM,
    "info": Severity.LOW,
    "low": Severity.LOW,
    "note": Severity.LOW,
}

UNKNOWN_SEVERITY_DEFAULT = Severity.MEDIUM


def normalize_severity(raw: object) -> Severity:
    """Map a tool-specific severity word onto the four-level scale.

    Unknown or missing values land in MEDIUM rather than the lowest bucket.
    """

    if raw is None:
        return UNKNOWN_SEVERITY_DEFAULT
    return _TOOL_SEVERITY.get(str(raw).strip().lower(), UNKNOWN_SEVERITY_DEFAULT)


@dataclass(frozen=True)
class ToolSpec:
    """Static description of one wrapped binary."""

    name: str
    binary: str
    normalize: Normalizer
    empty_output_is_clean: bool = False


def check_available(binary: str) -> bool:
    """Return True when ``binary`` resolves on PATH.

    A missing binary is an ordinary NOT_INSTALLED outcome, not an error.
    """

    return shutil.which(binary) is not None


def require_binary(binary: str) -> str:
    """Return the resolved path of ``binary`` or raise :class:`ToolNotInstalledError`."""

    resolved = shutil.which(binary)
    if resolved is None:
        raise ToolNotInstalledError(f"{binary} was not found on PATH")
    return resolved


def decode_report(stdout: str) -> Any:
    """Decode a tool's JSON report or raise :class:`ToolParseError`."""

    try:
        return json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ToolParseError(f"output is not valid JSON ({exc.msg})") from exc


def relative_to_root(path: str, root: str) -> str:
    """Express a tool-reported path relative to the scan root when possible."""

    if not path:
        return path
    try:
        base = Path(root).resolve()
        if base.is_file():
            base = base.parent
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = Path.cwd() / candidate
        return candidate.resolve().relative_to(base).as_posix()
    except (OSError, ValueError):
        return path


def _failed(spec: ToolSpec, reason_code: str, detail: str) -> ToolResult:
    _LOG.warning("%s failed (%s): %s", spec.name, reason_code, detail)
    record_scan_event(TOOL_EXECUTION_FAILED, tool=spec.name, reason=reason_code)
    return ToolResult.failed(spec.name, detail)


STDOUT_CHUNK_BYTES = 64 * 1024
STDERR_TAIL_BYTES = 4096


class OutputLimitExceeded(ToolExecutionError):
    """Raised when a tool writes more than its stdout cap."""


def _drain(stream: Any, limit: int, chunks: list[bytes]) -> None:
    """Read ``stream`` until EOF or until more than ``limit`` bytes arrived."""

    total = 0
    while total <= limit:
        chunk = stream.read(min(STDOUT_CHUNK_BYTES, limit + 1 - total))
        if not chunk:
            return
        chunks.append(chunk)
        total += len(chunk)


def _kill(process: subprocess.Popen) -> None:
    process.kill()
    process.wait()


def _read_tail(handle: Any) -> bytes:
    handle.seek(0, os.SEEK_END)
    handle.seek(max(handle.tell() - STDERR_TAIL_BYTES, 0))
    return handle.read()


def run_bounded(
    command: Sequence[str],
    *,
    cwd: str | None,
    timeout_seconds: int,
    max_output_bytes: int,
) -> subprocess.CompletedProcess:
    """Run ``command`` without a shell, bounding both wall time and stdout.

    Stdout is read incrementally; the child is killed as soon as it exceeds
    ``max_output_bytes`` (:class:`OutputLimitExceeded`) or the deadline
    passes (:class:`subprocess.TimeoutExpired`). Only the tail of stderr is
    kept.
    """

    deadline = time.monotonic() + timeout_seconds
    with tempfile.TemporaryFile() as stderr_file:
        process = subprocess.Popen(
            list(command), cwd=cwd, stdout=subprocess.PIPE, stderr=stderr_file
        )
        chunks: list[bytes] = []
        reader = threading.Thread(
            target=_drain, args=(process.stdout, max_output_bytes, chunks), daemon=True
        )
        reader.start()
        try:
            reader.join(timeout_seconds)
            if reader.is_alive():
                _kill(process)
                raise subprocess.TimeoutExpired(list(command), timeout_seconds)

            stdout = b"".join(chunks)
            if len(stdout) > max_output_bytes:
                _kill(process)
                raise OutputLimitExceeded(f"stdout exceeded {max_output_bytes} bytes")

            try:
                returncode = process.wait(timeout=max(deadline - time.monotonic(), 0))
            except subprocess.TimeoutExpired:
                _kill(process)
                raise
        finally:
            # A killed tool can leave a grandchild holding the pipe open.
            reader.join(1.0)
            if not reader.is_alive():
                process.stdout.close()
        stderr = _read_tail(stderr_file)
    return subprocess.CompletedProcess(list(command), returncode, stdout, stderr)


def _stderr_tail(stderr: bytes) -> str:
    text = stderr.decode("utf-8", errors="replace").strip()
    if not text:
        return ""
    return text.splitlines()[-1][:200]


def invoke(
    spec: ToolSpec,
    args: Sequence[str],
    *,
    target: str,
    timeout_seconds: int,
    max_output_bytes: int,
    cwd: str | None = None,
) -> ToolResult:
    """Run ``spec.binary`` with ``args`` and fold every outcome into a result."""

    try:
        binary_path = require_binary(spec.binary)
    except ToolNotInstalledError:
        _LOG.info("%s is not installed", spec.name)
        return ToolResult.not_installed(spec.name)

    command = [binary_path, *args]
    _LOG.debug("Running %s", " ".join(command))
    try:
        completed = run_bounded(
            command,
            cwd=cwd,
            timeout_seconds=timeout_seconds,
            max_output_bytes=max_output_bytes,
        )
    except subprocess.TimeoutExpired:
        return _failed(spec, "timeout", f"{spec.name} timed out after {timeout_seconds}s")
    except OutputLimitExceeded:
        return _failed(
            spec,
            "output_limit",
            f"{spec.name} output exceeded {max_output_bytes} bytes",
        )
    except FileNotFoundError:
        return ToolResult.not_installed(spec.name)
    except OSError as exc:
        return _failed(spec, "launch_failed", f"{spec.name} could not be started: {exc}")

    text = (completed.stdout or b"").decode("utf-8", errors="replace")
    exit_code = completed.returncode

    if not text.strip():
        if spec.empty_output_is_clean and exit_code == 0:
            return ToolResult.ok(spec.name)
        detail = f"{spec.name} exited with code {exit_code} and produced no report"
        tail = _stderr_tail(completed.stderr or b"")
        return _failed(spec, "empty_output", f"{detail}: {tail}" if tail else detail)

    try:
        report = decode_report(text)
    except ToolParseError as exc:
        if exit_code == 0:
            return _failed(spec, "unparsable_output", f"{spec.name} {exc}")
        tail = _stderr_tail(completed.stderr or b"")
        detail = f"{spec.name} exited with code {exit_code}; {exc}"
        return _failed(spec, "unparsable_output", f"{detail}: {tail}" if tail else detail)

    try:
        findings = spec.normalize(report, target)
    except ToolExecutionError as exc:
        return _failed(spec, "tool_reported_error", f"{spec.name}: {exc}")
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        return _failed(
            spec, "unexpected_report_shape", f"{spec.name} report had an unexpected shape: {exc}"
        )

    if exit_code != 0:
        _LOG.info(
            "%s exited with code %s and a valid report (%d findings)",
            spec.name,
            exit_code,
            len(findings),
        )
    return ToolResult.ok(spec.name, findings)

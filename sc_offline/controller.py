"""Build controller: run the pipeline as a child process and keep its log.

At most one run at a time. The child's stdout and stderr are read line by
line on two reader threads and funnelled through one queue; a drain thread
appends each line to a bounded ring (oldest lines fall off) and mirrors it to
the operator log. stderr lines are prefixed with `ERROR: `. When both streams
close, the drain thread records the exit code and clears the running flag.

    controller = BuildController(settings)
    controller.trigger()      # TriggerResult.ACCEPTED
    controller.status()       # {"isRunning": True, "logs": [...]}
"""

from __future__ import annotations

import enum
import os
import queue
import subprocess
import sys
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .common import log
from .errors import ConcurrentRunRejected

DEFAULT_LOG_CAPACITY = 1000

STDOUT = "stdout"
STDERR = "stderr"


class TriggerResult(enum.Enum):
    ACCEPTED = "accepted"
    ALREADY_RUNNING = "already_running"
    START_FAILED = "start_failed"


class PipelineRunState:
    """Running flag plus the bounded log ring shown to operators."""

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        self.running = False
        self.logs: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        with self._lock:
            self.logs.append(f"[{stamp}] {line}")

    def reset(self) -> None:
        with self._lock:
            self.logs.clear()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {"isRunning": self.running, "logs": list(self.logs)}


def pipeline_command(settings=None) -> List[str]:
    cmd = [sys.executable, "-m", "sc_offline.pipeline"]
    if settings is not None:
        cmd += ["--base-dir", str(settings.base_dir)]
    return cmd


class BuildController:
    def __init__(self, settings=None, command: Optional[List[str]] = None, cwd=None) -> None:
        self.settings = settings
        capacity = settings.log_capacity if settings is not None else DEFAULT_LOG_CAPACITY
        self.state = PipelineRunState(capacity)
        self.command = list(command) if command is not None else pipeline_command(settings)
        self.cwd = cwd if cwd is not None else (settings.base_dir if settings is not None else None)
        self._lock = threading.Lock()
        self._process: Optional[subprocess.Popen] = None
        self._done = threading.Event()
        self._done.set()

    # --- public API ---

    def trigger(self) -> TriggerResult:
        try:
            self._start()
        except ConcurrentRunRejected:
            log("Build already in progress; trigger ignored.", "WARN")
            return TriggerResult.ALREADY_RUNNING
        except OSError as e:
            log(f"Failed to start build pipeline: {e}", "ERROR")
            return TriggerResult.START_FAILED
        return TriggerResult.ACCEPTED

    def status(self) -> Dict[str, Any]:
        return self.state.snapshot()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current run (if any) has finished. False on timeout."""
        return self._done.wait(timeout)

    def bootstrap_if_missing(self) -> Optional[TriggerResult]:
        """Start a run when no index exists yet (first start of a fresh deployment)."""
        if self.settings is None or self.settings.index_path.is_file():
            return None
        log("Sutta index missing. Triggering initial build...", "WARN")
        return self.trigger()

    # --- internals ---

    def _start(self) -> None:
        with self._lock:
            if self.state.running:
                raise ConcurrentRunRejected("A build is already running")
            self.state.reset()
            self.state.append("Starting build pipeline...")
            env = dict(os.environ, PYTHONUNBUFFERED="1")
            try:
                proc = subprocess.Popen(
                    self.command,
                    cwd=str(self.cwd) if self.cwd is not None else None,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True, encoding="utf-8", errors="replace",
                    bufsize=1,
                    env=env,
                )
            except OSError as e:
                self.state.append(f"ERROR: Failed to start pipeline: {e}")
                raise
            self._process = proc
            self.state.running = True
            self._done.clear()

        lines: queue.Queue = queue.Queue()
        for tag, stream in ((STDOUT, proc.stdout), (STDERR, proc.stderr)):
            threading.Thread(target=_read_stream, args=(stream, tag, lines), daemon=True).start()
        threading.Thread(target=self._drain, args=(proc, lines), daemon=True).start()

    def _drain(self, proc: subprocess.Popen, lines: queue.Queue) -> None:
        open_streams = 2
        try:
            while open_streams:
                tag, text = lines.get()
                if text is None:
                    open_streams -= 1
                    continue
                if tag == STDERR:
                    text = f"ERROR: {text}"
                self.state.append(text)
                log(f"[pipeline] {text}")
            code = proc.wait()
            self.state.append(f"Process exited with code {code}")
            if code == 0:
                self.state.append("✅ Build pipeline finished successfully.")
            log(f"Build pipeline exited with code {code}", "INFO" if code == 0 else "ERROR")
        finally:
            self.state.running = False
            self._done.set()


def _read_stream(stream, tag: str, lines: queue.Queue) -> None:
    try:
        for raw in iter(stream.readline, ""):
            text = raw.rstrip()
            if text:
                lines.put((tag, text))
    finally:
        stream.close()
        lines.put((tag, None))

"""Fire-and-forget dispatch of map URIs to the OS handler.

- Hands a finished URI (e.g. from BingMapsUriBuilder.build()) to the
  platform's registered handler: `open` on macOS, `explorer` on Windows,
  `xdg-open` elsewhere, or a configured command.
- Dispatch runs on a worker thread; `launch()` returns a Future at once.
- The handler process is started in its own session, not waited for; a
  daemon thread reaps it when it exits. Failures (missing handler, OS
  errors) are recorded, never raised to the caller.
- Writes data/logs/launch_log.jsonl style attempt records when a log path is set.
"""

from __future__ import annotations

import argparse
import dataclasses
import datetime as dt
import json
import os
import subprocess
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import config_loader  # type: ignore


STATUS_DISPATCHED = "DISPATCHED"


@dataclasses.dataclass(frozen=True)
class LaunchResult:
    uri: str
    command: List[str]
    status: str

    @property
    def ok(self) -> bool:
        return self.status == STATUS_DISPATCHED


def default_command(platform: str = sys.platform) -> List[str]:
    """Return the argv prefix that opens a URI with the registered handler."""
    if platform == "darwin":
        return ["open"]
    if platform.startswith("win"):
        return ["explorer"]
    return ["xdg-open"]


# Isolated for unit-test monkeypatching
def _popen(args: Sequence[str]) -> Any:
    proc = subprocess.Popen(
        list(args),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    threading.Thread(target=proc.wait, name="uri-launcher-reaper", daemon=True).start()
    return proc


# ------------------------------
# Logging (JSONL; thread-safe)
# ------------------------------


class LaunchLog:
    """Append one JSON line per launch attempt; a no-op without a path."""

    def __init__(self, path: Optional[str]) -> None:
        self.path = path
        self._lock = threading.Lock()
        if path:
            Path(os.path.dirname(path) or ".").mkdir(parents=True, exist_ok=True)

    def record(self, started: str, result: LaunchResult) -> None:
        if not self.path:
            return
        rec = {"ts": started, **dataclasses.asdict(result), "ok": result.ok}
        line = json.dumps(rec, ensure_ascii=False)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")


# ------------------------------
# Launcher
# ------------------------------


class UriLauncher:
    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        workers: int = 1,
        log_path: Optional[str] = None,
        popen: Optional[Callable[[Sequence[str]], Any]] = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1.")
        self.command = list(command) if command else default_command()
        self._popen = popen
        self._log = LaunchLog(log_path)
        self._pool = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="uri-launcher"
        )

    @classmethod
    def from_config(
        cls,
        cfg: config_loader.Config,
        popen: Optional[Callable[[Sequence[str]], Any]] = None,
    ) -> "UriLauncher":
        return cls(
            command=cfg.launcher.command,
            workers=cfg.launcher.workers,
            log_path=cfg.launcher.log_path,
            popen=popen,
        )

    def _dispatch(self, uri: str) -> LaunchResult:
        started = dt.datetime.now(dt.timezone.utc).isoformat()
        args = self.command + [uri]
        popen = self._popen or _popen
        try:
            popen(args)
            status = STATUS_DISPATCHED
        except Exception as e:
            status = f"EXC_{e.__class__.__name__}"

        result = LaunchResult(uri=uri, command=list(self.command), status=status)
        self._log.record(started, result)
        return result

    def launch(self, uri: str) -> "Future[LaunchResult]":
        """Submit `uri` to the OS handler and return without waiting.

        The returned future always resolves to a LaunchResult; callers may
        inspect it or ignore it.
        """
        if not uri:
            raise ValueError("Cannot launch an empty URI.")
        return self._pool.submit(self._dispatch, uri)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "UriLauncher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Open a map URI with the OS handler.")
    parser.add_argument("uri", help="URI to open, e.g. bingmaps:?cp=47.6~-122.3")
    parser.add_argument("--config", required=False, help="Path to YAML config file.")
    args = parser.parse_args()

    if args.config:
        launcher = UriLauncher.from_config(config_loader.load_config(args.config))
    else:
        launcher = UriLauncher()

    with launcher:
        result = launcher.launch(args.uri).result()
    print(f"{result.status}: {' '.join(result.command)} {result.uri}", flush=True)


if __name__ == "__main__":
    main()

import json
import pathlib
import sys
import threading

import pytest

# Ensure src/ is importable
REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
SRC_DIR = REPO_ROOT / "src"
sys.path.append(str(SRC_DIR))

import bingmaps_uri as bm  # type: ignore
import config_loader  # type: ignore
import uri_launcher as ul  # type: ignore


def read_jsonl(path):
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def test_default_command_per_platform():
    assert ul.default_command("darwin") == ["open"]
    assert ul.default_command("win32") == ["explorer"]
    assert ul.default_command("linux") == ["xdg-open"]


def test_launch_dispatches_and_logs(tmp_path):
    calls = []

    def stub_popen(args):
        calls.append(list(args))

    log_path = tmp_path / "logs" / "launch_log.jsonl"
    uri = "bingmaps:?cp=47.6~-122.3&q=coffee"
    with ul.UriLauncher(command=["my-open"], log_path=str(log_path), popen=stub_popen) as launcher:
        result = launcher.launch(uri).result(timeout=5)

    assert calls == [["my-open", uri]]
    assert result.ok
    assert result.status == "DISPATCHED"
    assert result.uri == uri

    records = read_jsonl(log_path)
    assert len(records) == 1
    assert records[0]["uri"] == uri
    assert records[0]["command"] == ["my-open"]
    assert records[0]["status"] == "DISPATCHED"
    assert records[0]["ok"] is True


def test_launch_failure_is_not_raised(tmp_path):
    def failing_popen(args):
        raise FileNotFoundError("no handler")

    log_path = tmp_path / "launch_log.jsonl"
    with ul.UriLauncher(command=["missing"], log_path=str(log_path), popen=failing_popen) as launcher:
        future = launcher.launch("bingmaps:?sty=a")
        result = future.result(timeout=5)

    assert future.exception() is None
    assert not result.ok
    assert result.status == "EXC_FileNotFoundError"
    assert read_jsonl(log_path)[0]["status"] == "EXC_FileNotFoundError"
    assert read_jsonl(log_path)[0]["ok"] is False


def test_popen_starts_new_session_and_reaps_child(monkeypatch):
    spawned = {}
    reaped = threading.Event()

    class FakeProc:
        def __init__(self, args, **kwargs):
            spawned["args"] = args
            spawned["kwargs"] = kwargs

        def wait(self):
            reaped.set()
            return 0

    monkeypatch.setattr(ul.subprocess, "Popen", FakeProc)

    proc = ul._popen(["xdg-open", "bingmaps:?sty=r"])

    assert isinstance(proc, FakeProc)
    assert spawned["args"] == ["xdg-open", "bingmaps:?sty=r"]
    assert spawned["kwargs"]["start_new_session"] is True
    assert reaped.wait(timeout=5)


def test_module_level_popen_can_be_monkeypatched(monkeypatch):
    calls = []
    monkeypatch.setattr(ul, "_popen", lambda args: calls.append(list(args)))

    with ul.UriLauncher(command=["xdg-open"]) as launcher:
        launcher.launch("bingmaps:?trfc=1").result(timeout=5)

    assert calls == [["xdg-open", "bingmaps:?trfc=1"]]


def test_launch_rejects_empty_uri():
    with ul.UriLauncher(popen=lambda args: None) as launcher:
        with pytest.raises(ValueError):
            launcher.launch("")


def test_workers_must_be_positive():
    with pytest.raises(ValueError):
        ul.UriLauncher(workers=0)


def test_show_map_with_launcher():
    calls = []
    with ul.UriLauncher(command=["open"], popen=lambda args: calls.append(list(args))) as launcher:
        result = bm.BingMapsUriBuilder().set_map_style(bm.MapStyle.AERIAL).show_map(launcher).result(timeout=5)

    assert result.ok
    assert calls == [["open", "bingmaps:?sty=a"]]


def test_show_map_default_launcher_never_raises(monkeypatch):
    def failing_popen(args):
        raise OSError("launcher unavailable")

    monkeypatch.setattr(ul, "_popen", failing_popen)
    future = bm.BingMapsUriBuilder().query("coffee").show_map()
    result = future.result(timeout=5)
    assert result.status == "EXC_OSError"
    assert result.uri == "bingmaps:?q=coffee"


def test_from_config(tmp_path):
    cfg_path = tmp_path / "config.yml"
    log_path = tmp_path / "launch.jsonl"
    cfg_path.write_text(
        "project:\n"
        "  name: demo\n"
        "  version: '1.0'\n"
        "launcher:\n"
        "  command: [custom-open, --new-window]\n"
        "  workers: 2\n"
        f"  log_path: {log_path.as_posix()}\n",
        encoding="utf-8",
    )
    cfg = config_loader.load_config(str(cfg_path))
    calls = []
    with ul.UriLauncher.from_config(cfg, popen=lambda args: calls.append(list(args))) as launcher:
        launcher.launch("bingmaps:?lvl=3").result(timeout=5)

    assert calls == [["custom-open", "--new-window", "bingmaps:?lvl=3"]]
    assert read_jsonl(log_path)[0]["command"] == ["custom-open", "--new-window"]

"""Tests for the build controller (real child processes running short Python snippets)."""

import sys

import pytest

from sc_offline.config import Settings
from sc_offline.controller import BuildController, PipelineRunState, TriggerResult, pipeline_command


def py(code):
    return [sys.executable, "-c", code]


def messages(logs):
    """Strip the `[timestamp] ` prefix from ring entries."""
    return [line.split("] ", 1)[1] for line in logs]


class TestRunState:

    def test_ring_is_bounded(self):
        state = PipelineRunState(capacity=1000)
        for i in range(1500):
            state.append(f"line {i}")
        logs = state.snapshot()["logs"]
        assert len(logs) == 1000
        assert logs[0].endswith("line 500")
        assert logs[-1].endswith("line 1499")

    def test_snapshot_shape(self):
        state = PipelineRunState()
        assert state.snapshot() == {"isRunning": False, "logs": []}


class TestController:

    def test_captures_stdout_and_stderr(self):
        c = BuildController(command=py(
            "import sys; print('hello out', flush=True); print('hello err', file=sys.stderr, flush=True)"))
        assert c.trigger() is TriggerResult.ACCEPTED
        assert c.wait(30)
        status = c.status()
        assert status["isRunning"] is False
        msgs = messages(status["logs"])
        assert "hello out" in msgs
        assert "ERROR: hello err" in msgs
        assert msgs[-2:] == ["Process exited with code 0", "✅ Build pipeline finished successfully."]

    def test_blank_lines_dropped(self):
        c = BuildController(command=py(
            "import sys; print('a'); print(); print('   '); print('', file=sys.stderr); print('b')"))
        c.trigger()
        assert c.wait(30)
        msgs = messages(c.status()["logs"])
        assert "" not in msgs
        assert "ERROR: " not in msgs
        assert msgs[1:3] == ["a", "b"]

    def test_nonzero_exit_recorded_without_success_line(self):
        c = BuildController(command=py("import sys; sys.exit(3)"))
        c.trigger()
        assert c.wait(30)
        msgs = messages(c.status()["logs"])
        assert msgs[-1] == "Process exited with code 3"

    def test_second_trigger_rejected_and_logs_untouched(self):
        c = BuildController(command=py("import time; print('working', flush=True); time.sleep(30)"))
        try:
            assert c.trigger() is TriggerResult.ACCEPTED
            before = c.status()
            assert before["isRunning"] is True
            assert c.trigger() is TriggerResult.ALREADY_RUNNING
            after = c.status()
            assert after["isRunning"] is True
            assert after["logs"][: len(before["logs"])] == before["logs"]
            assert "Starting build pipeline..." in messages(after["logs"])[0]
        finally:
            c._process.kill()
            c.wait(30)

    def test_retrigger_after_finish_resets_logs(self):
        c = BuildController(command=py("print('run', flush=True)"))
        c.trigger()
        c.wait(30)
        c.trigger()
        c.wait(30)
        msgs = messages(c.status()["logs"])
        assert msgs.count("run") == 1

    def test_start_failure(self, tmp_path):
        c = BuildController(command=[str(tmp_path / "no-such-binary")])
        assert c.trigger() is TriggerResult.START_FAILED
        status = c.status()
        assert status["isRunning"] is False
        assert any("Failed to start pipeline" in line for line in status["logs"])
        assert c.wait(0)

    def test_bootstrap_only_when_index_missing(self, tmp_path):
        settings = Settings(base_dir=tmp_path)
        c = BuildController(settings, command=py("pass"))
        assert c.bootstrap_if_missing() is TriggerResult.ACCEPTED
        assert c.wait(30)

        settings.index_path.parent.mkdir(parents=True)
        settings.index_path.write_text("{}", encoding="utf-8")
        assert c.bootstrap_if_missing() is None

    @pytest.mark.parametrize("with_settings", [True, False])
    def test_default_command(self, tmp_path, with_settings):
        settings = Settings(base_dir=tmp_path) if with_settings else None
        cmd = pipeline_command(settings)
        assert cmd[:3] == [sys.executable, "-m", "sc_offline.pipeline"]
        assert ("--base-dir" in cmd) is with_settings

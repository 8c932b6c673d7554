"""Tests for the pipeline runner (fake sync + offline API, real index/bundle stages)."""

import json
import zipfile
from unittest.mock import patch

import httpx

from sc_offline.pipeline import EXIT_FAILED, EXIT_OK, Pipeline
from sc_offline.remote import RemoteClient

API = "https://api.example.test/api"


class FakeSync:
    def __init__(self, initialized=True, pull_result=True, pull_error=None, clone_error=None,
                 revision="abc123", revision_error=None):
        self.initialized = initialized
        self.pull_result = pull_result
        self.pull_error = pull_error
        self.clone_error = clone_error
        self._revision = revision
        self.revision_error = revision_error
        self.calls = []

    def is_initialized(self):
        return self.initialized

    def fresh_clone(self):
        self.calls.append("clone")
        if self.clone_error:
            raise self.clone_error

    def pull(self):
        self.calls.append("pull")
        if self.pull_error:
            raise self.pull_error
        return self.pull_result

    def revision(self):
        if self.revision_error:
            raise self.revision_error
        return self._revision

    def revision_timestamp(self):
        return "2024-05-01T10:00:00+00:00"


class FailingBundler:
    def bundle(self, source_dir, output_path, exclude):
        raise OSError("disk full")


def offline_client():
    return RemoteClient(API, delay=0, transport=httpx.MockTransport(lambda r: httpx.Response(503)))


def make_pipeline(settings, **kwargs):
    return Pipeline(settings, sync=kwargs.pop("sync", FakeSync()), client=offline_client(), **kwargs)


# ---------------------------------------------------------------------------
# Full runs
# ---------------------------------------------------------------------------

class TestRun:

    def test_success_writes_index_bundle_and_stamp(self, settings, corpus):
        code = make_pipeline(settings).run()

        assert code == EXIT_OK
        assert "dn1" in json.loads(settings.index_path.read_text(encoding="utf-8"))
        with zipfile.ZipFile(settings.bundle_path) as zf:
            names = zf.namelist()
        assert "bilara-data-published/root/pli/ms/sutta/dn/dn1_root-pli-ms.json" in names
        assert not any(n.startswith("generated/") for n in names)
        stamp = json.loads(settings.version_path.read_text(encoding="utf-8"))
        assert stamp["commit"] == "abc123"
        assert stamp["date"] == "2024-05-01T10:00:00+00:00"
        assert set(stamp) == {"commit", "date", "updated_at"}

    def test_up_to_date_with_index_short_circuits(self, settings, corpus):
        settings.index_path.parent.mkdir(parents=True)
        settings.index_path.write_text("{}", encoding="utf-8")
        code = make_pipeline(settings, sync=FakeSync(pull_result=False)).run()

        assert code == EXIT_OK
        assert settings.index_path.read_text(encoding="utf-8") == "{}"
        assert not settings.bundle_path.exists()
        assert not settings.version_path.exists()

    def test_up_to_date_without_index_builds(self, settings, corpus):
        code = make_pipeline(settings, sync=FakeSync(pull_result=False)).run()
        assert code == EXIT_OK
        assert settings.index_path.is_file()
        assert settings.bundle_path.is_file()

    def test_pull_failure_continues_with_local_state(self, settings, corpus):
        sync = FakeSync(pull_error=RuntimeError("network down"))
        assert make_pipeline(settings, sync=sync).run() == EXIT_OK
        assert settings.version_path.is_file()

    def test_fresh_clone_when_uninitialized(self, settings, corpus):
        sync = FakeSync(initialized=False)
        assert make_pipeline(settings, sync=sync).run() == EXIT_OK
        assert sync.calls == ["clone"]

    def test_clone_failure_is_fatal(self, settings):
        sync = FakeSync(initialized=False, clone_error=RuntimeError("repository not found"))
        assert make_pipeline(settings, sync=sync).run() == EXIT_FAILED
        assert not settings.index_path.exists()

    def test_bundle_failure_exits_1_without_stamp(self, settings, corpus):
        code = make_pipeline(settings, bundler=FailingBundler()).run()
        assert code == EXIT_FAILED
        assert settings.index_path.is_file()
        assert not settings.version_path.exists()

    def test_stage_error_aborts_before_later_stages(self, settings, corpus):
        p = make_pipeline(settings)
        with patch("sc_offline.pipeline.rebuild", side_effect=ValueError("bad corpus")):
            assert p.run() == EXIT_FAILED
        assert not settings.bundle_path.exists()


# ---------------------------------------------------------------------------
# Commit info
# ---------------------------------------------------------------------------

class TestCommitInfo:

    def test_fallbacks_when_git_fails(self, settings):
        p = make_pipeline(settings, sync=FakeSync(revision_error=RuntimeError("no HEAD")))
        info = p.commit_info()
        assert info["commit"] == "unknown"
        assert info["date"]
        assert info["updated_at"].endswith("Z")

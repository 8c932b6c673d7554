"""Tests for the environment check."""

from unittest.mock import patch

import pytest

from sc_offline import check_env


class TestChecks:

    def test_python_version(self):
        assert check_env.check_python_version((3, 12, 0)) == []
        assert check_env.check_python_version((3, 8, 10))

    def test_import_ok_and_missing(self):
        assert check_env.check_import("json", "json") == (True, None)
        ok, msg = check_env.check_import("definitely_not_a_module_xyz", "nothing")
        assert not ok
        assert "nothing" in msg

    def test_git_missing(self):
        with patch("sc_offline.check_env.shutil.which", return_value=None):
            assert check_env.check_git()

    def test_main_fails_without_git(self, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv("SC_OFFLINE_CONFIG", raising=False)
        with patch("sc_offline.check_env.shutil.which", return_value=None):
            with pytest.raises(SystemExit) as exc:
                check_env.main(["--base-dir", str(tmp_path)])
        assert exc.value.code == 2
        assert "ENV CHECK: FAIL" in capsys.readouterr().out

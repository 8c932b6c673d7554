"""Tests for the zip bundler."""

import zipfile

import pytest

from conftest import write_doc
from sc_offline.bundle import ZipBundler, bundle_from_settings, iter_bundle_files


class TestBundle:

    def test_excludes_names_at_any_depth(self, tmp_path):
        src = tmp_path / "data"
        write_doc(src / "corpus/root/a.json", {})
        write_doc(src / "corpus/.git/HEAD", {})
        write_doc(src / "generated/sutta_index.json", {})
        write_doc(src / "menus/root.json", {})
        write_doc(src / "corpus/sub/node_modules/x.js", {})
        write_doc(src / "corpus/legacy_sutta_map.json", {})

        out = ZipBundler().bundle(src, tmp_path / "public/data.zip",
                                  [".git", "node_modules", "generated", "menus"])

        with zipfile.ZipFile(out) as zf:
            names = sorted(zf.namelist())
        assert names == ["corpus/legacy_sutta_map.json", "corpus/root/a.json"]

    def test_deflate_compression(self, tmp_path):
        src = tmp_path / "data"
        (src / "big.txt").parent.mkdir(parents=True)
        (src / "big.txt").write_text("sīla " * 5000, encoding="utf-8")
        out = ZipBundler().bundle(src, tmp_path / "out.zip", [])
        with zipfile.ZipFile(out) as zf:
            info = zf.getinfo("big.txt")
        assert info.compress_type == zipfile.ZIP_DEFLATED
        assert info.compress_size < info.file_size

    def test_missing_source_raises_and_keeps_old_bundle(self, tmp_path):
        old = tmp_path / "data.zip"
        old.write_bytes(b"previous")
        with pytest.raises(FileNotFoundError):
            ZipBundler().bundle(tmp_path / "nope", old, [])
        assert old.read_bytes() == b"previous"

    def test_sorted_walk(self, tmp_path):
        write_doc(tmp_path / "b/2.json", {})
        write_doc(tmp_path / "a/1.json", {})
        write_doc(tmp_path / "c.json", {})
        rels = [rel for _, rel in iter_bundle_files(tmp_path, [])]
        assert rels == ["c.json", "a/1.json", "b/2.json"]

    def test_from_settings(self, settings, corpus):
        out = bundle_from_settings(settings)
        assert out == settings.bundle_path
        with zipfile.ZipFile(out) as zf:
            assert "bilara-data-published/_author.json" in zf.namelist()

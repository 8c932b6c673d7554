#!/usr/bin/env python3
"""Offline data build pipeline (fixed-order stage machine).

Stages:
  1) sync      git clone (first run) or pull of the published corpus
  2) commit    record revision id + commit timestamp
  3) menus     re-fetch the navigation tree and flatten menus/
  4) prune     drop locales / metadata the bundle does not serve
  5) index     rebuild generated/sutta_index.json
  6) legacy    backfill suttas missing from the corpus
  7) bundle    zip the data directory into public/data.zip
  8) version   write public/data.json (only after a successful bundle)

Stage 1 degrades instead of failing: a failed pull continues with the local
corpus, and "already up to date" with an existing index ends the run early
with success. A failed fresh clone is fatal, there is no local state to use.
Any error in stages 3-7 aborts the run (exit code 1) and leaves the partial
corpus on disk for inspection.

Run directly, or let the build controller spawn it:
    python -m sc_offline.pipeline [--base-dir DIR] [--config FILE]
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .bundle import ZipBundler
from .cleanup import prune_from_settings
from .common import log, log_separator, utc_now, write_json
from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData, PipelineStageFailure
from .index_builder import rebuild
from .legacy import backfill
from .menus import fetch_all_menus
from .remote import RemoteClient
from .sync import GitSync
from .validation import DATA_VERSION_SCHEMA, validate

EXIT_OK = 0
EXIT_FAILED = 1


class Pipeline:
    def __init__(self, settings, sync=None, client=None, bundler=None) -> None:
        self.settings = settings
        self.sync = sync or GitSync.from_settings(settings)
        self.client = client
        self.bundler = bundler or ZipBundler()
        self.version_info: Dict[str, str] = {}

    def _client(self) -> RemoteClient:
        if self.client is None:
            self.client = RemoteClient.from_settings(self.settings)
        return self.client

    # --- stage 1 + 2 ---

    def sync_corpus(self) -> bool:
        """Bring the corpus up to date. Returns False when the run can stop early."""
        if not self.sync.is_initialized():
            log("📂 Data directory or .git missing. Performing fresh clone...")
            try:
                self.sync.fresh_clone()
            except Exception as e:
                raise PipelineStageFailure("sync", e) from e
            return True
        try:
            has_changes = self.sync.pull()
        except Exception as e:
            log(f"⚠️ Git pull failed ({e}). Continuing build with current local state...", "WARN")
            return True
        if has_changes:
            return True
        if self.settings.index_path.is_file():
            log("✅ No new commits found and data exists. Pipeline complete (exiting early).")
            return False
        log("⚠️ Up to date but index is missing. Forcing full build...", "WARN")
        return True

    def commit_info(self) -> Dict[str, str]:
        commit = "unknown"
        date = datetime.now(timezone.utc).isoformat()
        try:
            commit = self.sync.revision()
            date = self.sync.revision_timestamp()
        except Exception as e:
            log(f"⚠️ Failed to retrieve git commit info ({e}). Using fallback dates.", "WARN")
        self.version_info = {"commit": commit, "date": date, "updated_at": utc_now()}
        log(f"Latest commit: {commit} from {date}")
        return self.version_info

    # --- stages 3-8 ---

    def fetch_menus(self) -> Any:
        return fetch_all_menus(self.settings, self._client())

    def prune(self) -> Any:
        return prune_from_settings(self.settings)

    def build_index(self) -> Any:
        return rebuild(self.settings)

    def fetch_legacy(self) -> Any:
        return backfill(self.settings, self._client())

    def bundle(self) -> Any:
        path = self.bundler.bundle(self.settings.data_dir, self.settings.bundle_path,
                                   self.settings.bundle_exclude)
        log(f"✅ Zip successfully generated at: {path}")
        return path

    def stamp_version(self) -> None:
        path = self.settings.version_path
        validate(self.version_info, DATA_VERSION_SCHEMA, path=path)
        write_json(path, self.version_info)
        log(f"✅ Version tracking saved to {path}")

    def _stage(self, number: int, title: str, name: str, fn: Callable[[], Any]) -> Any:
        log_separator(f"Step {number}: {title}")
        try:
            return fn()
        except PipelineStageFailure:
            raise
        except Exception as e:
            raise PipelineStageFailure(name, e) from e

    def run(self) -> int:
        log("🚀 Starting Offline Data Build Pipeline...")
        self.settings.public_dir.mkdir(parents=True, exist_ok=True)
        try:
            log_separator("Step 1: Syncing Git Data")
            if not self.sync_corpus():
                return EXIT_OK
            log_separator("Step 2: Retrieving Commit Status")
            self.commit_info()
            self._stage(3, "Fetching and Flattening Menus", "menus", self.fetch_menus)
            self._stage(4, "Cleaning Corpus (Keeping Legacy Safe)", "prune", self.prune)
            self._stage(5, "Building Sutta Index", "index", self.build_index)
            self._stage(6, "Fetching legacy content for missing suttas", "legacy", self.fetch_legacy)
            self._stage(7, "Generating Zip Bundle", "bundle", self.bundle)
            self._stage(8, "Writing Version History", "version", self.stamp_version)
        except PipelineStageFailure as e:
            log(f"🚨 Pipeline encountered a fatal error: {e}", "ERROR")
            return EXIT_FAILED
        finally:
            if self.client is not None:
                self.client.close()
        log("🎉 Pipeline Completed Successfully!")
        return EXIT_OK


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser(description="Run the offline data build pipeline")
    add_settings_args(ap)
    args = ap.parse_args(argv)
    try:
        settings = settings_from_args(args)
    except MalformedLocalData as e:
        log(str(e), "ERROR")
        sys.exit(EXIT_FAILED)
    sys.exit(Pipeline(settings).run())


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Package the data directory into the distributable zip bundle.

Every file under the data directory goes into the archive under its relative
path (forward slashes), except entries whose name is in the exclusion set
(`.git`, `node_modules`, `generated`, `menus` by default), at any depth.
The archive is written to a temp file and renamed into place, so a failed run
never replaces a good bundle with a truncated one.

Usage:
    sc-bundle [--base-dir DIR] [--config FILE]
"""

from __future__ import annotations

import argparse
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, Iterator, Tuple

from .common import die, log, norm_relpath
from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData

COMPRESS_LEVEL = 6


def iter_bundle_files(source_dir: Path, exclude: Iterable[str]) -> Iterator[Tuple[Path, str]]:
    excluded = set(exclude)
    for dirpath, dirnames, filenames in os.walk(source_dir):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for fn in sorted(filenames):
            if fn in excluded:
                continue
            fp = Path(dirpath) / fn
            yield fp, norm_relpath(fp, source_dir)


class ZipBundler:
    def __init__(self, compresslevel: int = COMPRESS_LEVEL) -> None:
        self.compresslevel = compresslevel

    def bundle(self, source_dir: Path, output_path: Path, exclude: Iterable[str]) -> Path:
        log("📦 Starting data bundle generation...")
        source_dir = Path(source_dir)
        output_path = Path(output_path)
        if not source_dir.is_dir():
            raise FileNotFoundError(f"Data directory not found: {source_dir}")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        log(f"📂 Scanning data from: {source_dir}")
        fd, tmp = tempfile.mkstemp(prefix=f".{output_path.name}.", suffix=".tmp", dir=str(output_path.parent))
        os.close(fd)
        count = 0
        try:
            with zipfile.ZipFile(tmp, "w", compression=zipfile.ZIP_DEFLATED,
                                 compresslevel=self.compresslevel) as zf:
                for fp, arcname in iter_bundle_files(source_dir, exclude):
                    zf.write(fp, arcname)
                    count += 1
            os.replace(tmp, output_path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

        size_mb = output_path.stat().st_size / 1024 / 1024
        log(f"✅ Data bundle created at: {output_path}")
        log(f"📊 {count} files, {size_mb:.2f} MB")
        return output_path


def bundle_from_settings(settings, bundler=None) -> Path:
    bundler = bundler or ZipBundler()
    return bundler.bundle(settings.data_dir, settings.bundle_path, settings.bundle_exclude)


def main() -> None:
    ap = argparse.ArgumentParser(description="Zip the data directory into the offline bundle")
    add_settings_args(ap)
    args = ap.parse_args()
    try:
        bundle_from_settings(settings_from_args(args))
    except (MalformedLocalData, OSError) as e:
        die(str(e))


if __name__ == "__main__":
    main()

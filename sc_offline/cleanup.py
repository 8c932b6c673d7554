#!/usr/bin/env python3
"""Prune the published corpus down to what the offline bundle serves.

For every facet directory (root, translation, html, comment, variant,
reference) only the allow-listed locale subdirectories are kept. Known unused
metadata files and directories at the corpus root are deleted. Anything not
named here (notably `legacy/` and `_author.json` / `_publication.json`) is
left alone.

Usage:
    sc-prune-corpus [--base-dir DIR] [--config FILE] [--dry-run]
"""

from __future__ import annotations

import argparse
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .common import die, log
from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData


@dataclass
class PruneReport:
    kept: List[str] = field(default_factory=list)
    deleted_dirs: List[str] = field(default_factory=list)
    deleted_files: List[str] = field(default_factory=list)


def prune_facet(corpus_dir: Path, facet: str, keep: List[str], report: PruneReport, dry_run: bool = False) -> None:
    facet_dir = corpus_dir / facet
    if not facet_dir.is_dir():
        log(f"Directory not found: {facet_dir}")
        return
    for sub in sorted(facet_dir.iterdir()):
        if not sub.is_dir() or sub.is_symlink():
            continue
        rel = f"{facet}/{sub.name}"
        if sub.name in keep:
            log(f"Keeping {rel}")
            report.kept.append(rel)
            continue
        log(f"Deleting {rel}...")
        if not dry_run:
            shutil.rmtree(sub)
        report.deleted_dirs.append(rel)


def prune_corpus(corpus_dir: Path, keep: Dict[str, List[str]], files: List[str], dirs: List[str],
                 dry_run: bool = False) -> PruneReport:
    log(f"Starting cleanup of {corpus_dir}...")
    report = PruneReport()

    for facet, locales in keep.items():
        prune_facet(corpus_dir, facet, locales, report, dry_run)

    for name in dirs:
        fp = corpus_dir / name
        if fp.is_dir():
            log(f"Deleting directory {name}...")
            if not dry_run:
                shutil.rmtree(fp)
            report.deleted_dirs.append(name)

    for name in files:
        fp = corpus_dir / name
        if fp.is_file():
            log(f"Deleting file {name}...")
            if not dry_run:
                fp.unlink()
            report.deleted_files.append(name)

    log(f"Cleanup complete ({len(report.deleted_dirs)} dirs, {len(report.deleted_files)} files removed).")
    return report


def prune_from_settings(settings, dry_run: bool = False) -> PruneReport:
    return prune_corpus(settings.corpus_dir, settings.prune_keep, settings.prune_files,
                        settings.prune_dirs, dry_run=dry_run)


def main() -> None:
    ap = argparse.ArgumentParser(description="Prune the corpus to served locales")
    add_settings_args(ap)
    ap.add_argument("--dry-run", action="store_true", help="Report what would be deleted")
    args = ap.parse_args()
    try:
        settings = settings_from_args(args)
    except MalformedLocalData as e:
        die(str(e))
    prune_from_settings(settings, dry_run=args.dry_run)


if __name__ == "__main__":
    main()

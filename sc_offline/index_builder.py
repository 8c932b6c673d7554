#!/usr/bin/env python3
"""Sutta index builder.

Produces the derived index consumed by the facet resolver:

    generated/sutta_index.json
    {
      "dn1": {
        "root": "sutta/dn/dn1_root-pli-ms.json",
        "translations": {"sujato": "sutta/dn/dn1_translation-en-sujato.json"}
      },
      ...
    }

`root` is relative to root/<lang>/<author>; each translation path is relative
to translation/<lang>/<author>. An entry with no root (translation only) keeps
`root: null` rather than being dropped.

Derived-only: every build replaces the file wholesale; never hand-edit it.
Walk order is sorted, so rebuilding an unchanged corpus rewrites identical bytes.

Usage:
    sc-build-index [--base-dir DIR] [--config FILE]
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterator

from .common import die, log, norm_relpath, read_json, write_json
from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData
from .facet_paths import RootDocument, TranslationDocument
from .validation import INDEX_SCHEMA, validate

SAMPLE_UID = "dn1"

Index = Dict[str, Dict[str, Any]]


def walk_files(base_dir: Path) -> Iterator[Path]:
    """Yield every file under base_dir in a stable (sorted) order."""
    for dirpath, dirnames, filenames in os.walk(base_dir):
        dirnames.sort()
        for fn in sorted(filenames):
            yield Path(dirpath) / fn


def index_roots(index: Index, root_dir: Path, tail: str) -> int:
    """Add `{uid: {root: relpath}}` for every root document under root_dir."""
    suffix = f"_root-{tail}.json"
    found = 0
    for fp in walk_files(root_dir):
        if not fp.name.endswith(suffix):
            continue
        rel = norm_relpath(fp, root_dir)
        try:
            doc = RootDocument.from_relpath(rel, tail)
        except ValueError:
            continue
        entry = index.setdefault(doc.uid, {"root": None, "translations": {}})
        entry["root"] = rel
        found += 1
    return found


def index_translations(index: Index, translation_dir: Path, lang: str) -> int:
    """Add `uid -> author -> relpath` for every translation under translation_dir/<author>/."""
    infix = f"_translation-{lang}-"
    found = 0
    for author in sorted(os.listdir(translation_dir)):
        author_dir = translation_dir / author
        if not author_dir.is_dir():
            continue
        log(f"  - Indexing author: {author}")
        for fp in walk_files(author_dir):
            if infix not in fp.name:
                continue
            rel = norm_relpath(fp, author_dir)
            try:
                doc = TranslationDocument.from_relpath(rel, lang)
            except ValueError:
                continue
            entry = index.setdefault(doc.uid, {"root": None, "translations": {}})
            entry["translations"][author] = rel
            found += 1
    return found


def build_index(settings) -> Index:
    """Walk the root and translation trees once and return the full index."""
    log("Building Sutta Index...")
    index: Index = {}

    log("Scanning Roots...")
    if settings.root_dir.is_dir():
        n = index_roots(index, settings.root_dir, settings.root_tail)
        log(f"  {n} root documents")
    else:
        log(f"Root directory not found: {settings.root_dir}", "WARN")

    log("Scanning Translations...")
    if settings.translation_dir.is_dir():
        n = index_translations(index, settings.translation_dir, settings.translation_lang)
        log(f"  {n} translation documents")
    else:
        log(f"Translation directory not found: {settings.translation_dir}", "WARN")

    log(f"Indexed {len(index)} suttas.")
    if SAMPLE_UID in index:
        log(f"Sample ({SAMPLE_UID}): {json.dumps(index[SAMPLE_UID], ensure_ascii=False)}")
    return index


def write_index(index: Index, path: Path) -> None:
    validate(index, INDEX_SCHEMA, path=path)
    write_json(path, index)
    log(f"Index saved to {path}")


def load_index(path: Path) -> Index:
    """Read and validate a previously built index.

    Raises FileNotFoundError if missing, MalformedLocalData if unreadable.
    """
    try:
        data = read_json(path)
    except json.JSONDecodeError as e:
        raise MalformedLocalData(f"Index is not valid JSON: {e}", path=path) from e
    return validate(data, INDEX_SCHEMA, path=path)


def rebuild(settings) -> Index:
    index = build_index(settings)
    write_index(index, settings.index_path)
    return index


def main() -> None:
    ap = argparse.ArgumentParser(description="Build the derived sutta index")
    add_settings_args(ap)
    args = ap.parse_args()
    try:
        rebuild(settings_from_args(args))
    except MalformedLocalData as e:
        die(str(e))


if __name__ == "__main__":
    main()

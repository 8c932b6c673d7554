#!/usr/bin/env python3
"""Legacy backfill: fetch flat-text fallbacks for menu leaves missing from the corpus.

    missing = leaf uids in menus/*.json - uids in the sutta index - uids in legacy map

For each missing uid, one at a time with a politeness delay after each call:
  1. GET /suttaplex/<uid>; take the first English translation (skip if none)
  2. GET /suttas/<uid>/<author>?lang=en
  3. non-empty translation.text -> legacy/en/<author>/<uid>.html, and
     legacy_sutta_map.json[uid] = {"author_uid": ..., "path": "legacy/en/<author>/<uid>.html"}

A uid already in the legacy map is never fetched again. The map is flushed
every 10 additions and once more at the end, so an interrupted run keeps all
but the last partial batch.

Usage:
    sc-fetch-legacy [--base-dir DIR] [--config FILE]
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .common import die, log, norm_relpath, read_json, write_json
from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData
from .index_builder import load_index
from .menus import collect_leaf_uids
from .remote import RemoteClient, first_document
from .validation import LEGACY_MAP_SCHEMA, validate

LegacyMap = Dict[str, Dict[str, str]]


def load_legacy_map(path: Path) -> LegacyMap:
    if not path.is_file():
        return {}
    try:
        data = read_json(path)
    except json.JSONDecodeError as e:
        raise MalformedLocalData(f"Legacy map is not valid JSON: {e}", path=path) from e
    return validate(data, LEGACY_MAP_SCHEMA, path=path)


def save_legacy_map(path: Path, legacy_map: LegacyMap) -> None:
    write_json(path, legacy_map)


def pick_translation(suttaplex: Any, lang: str = "en") -> Optional[Dict[str, Any]]:
    """First translation in `lang` listed by a suttaplex document, if any."""
    plex = first_document(suttaplex)
    if not isinstance(plex, dict):
        return None
    for t in plex.get("translations") or []:
        if isinstance(t, dict) and t.get("lang") == lang and t.get("author_uid"):
            return t
    return None


def translation_text(sutta: Any) -> str:
    if not isinstance(sutta, dict):
        return ""
    translation = sutta.get("translation")
    if not isinstance(translation, dict):
        return ""
    text = translation.get("text")
    return text if isinstance(text, str) else ""


def find_missing(leaves: List[str], index: Dict[str, Any], legacy_map: LegacyMap) -> List[str]:
    return [uid for uid in leaves if uid not in index and uid not in legacy_map]


def fetch_one(client: RemoteClient, uid: str, lang: str) -> Optional[tuple[str, str]]:
    """Return (author_uid, html text) for `uid`, or None when nothing usable exists."""
    suttaplex = client.fetch_suttaplex(uid)
    client.pause()
    if suttaplex is None:
        return None
    target = pick_translation(suttaplex, lang)
    if target is None:
        log(f"  No English translation found for {uid}")
        return None
    author_uid = target["author_uid"]
    sutta = client.fetch_sutta(uid, author_uid, lang)
    client.pause()
    text = translation_text(sutta)
    if not text:
        log(f"  Empty translation text for {uid} ({author_uid})")
        return None
    return author_uid, text


def backfill(settings, client: RemoteClient) -> int:
    """Fetch legacy content for every uncovered menu leaf. Returns newly fetched count."""
    log("Searching for missing suttas to generate Legacy fallback...")
    if not settings.index_path.is_file():
        log("sutta_index.json not found! Run the index builder first.", "ERROR")
        return 0

    index = load_index(settings.index_path)
    legacy_map = load_legacy_map(settings.legacy_map_path)

    leaves = collect_leaf_uids(settings.menus_dir)
    log(f"Found {len(leaves)} leaf nodes in menus.")
    uncovered = [uid for uid in leaves if uid not in index]
    log(f"Found {len(uncovered)} leaf nodes missing from corpus data.")
    todo = find_missing(leaves, index, legacy_map)
    log(f"{len(uncovered) - len(todo)} already covered by legacy map; {len(todo)} to fetch.")

    lang = settings.legacy_lang
    count = 0
    for uid in todo:
        log(f"Processing missing sutta: {uid}")
        try:
            fetched = fetch_one(client, uid, lang)
            if fetched is None:
                continue
            author_uid, text = fetched
            target = settings.legacy_dir / lang / author_uid / f"{uid}.html"
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except Exception as e:
            log(f"  Failed to backfill {uid}: {e}", "ERROR")
            continue

        rel = norm_relpath(target, settings.corpus_dir)
        legacy_map[uid] = {"author_uid": author_uid, "path": rel}
        log(f"  Saved legacy HTML for {uid} -> {rel}")
        count += 1
        if count % settings.legacy_flush_every == 0:
            save_legacy_map(settings.legacy_map_path, legacy_map)

    save_legacy_map(settings.legacy_map_path, legacy_map)
    log(f"Completed fetching legacy data. Newly fetched: {count} / Failed: {len(todo) - count}")
    return count


def main() -> None:
    ap = argparse.ArgumentParser(description="Backfill legacy content for suttas missing from the corpus")
    add_settings_args(ap)
    args = ap.parse_args()
    try:
        settings = settings_from_args(args)
        with RemoteClient.from_settings(settings) as client:
            backfill(settings, client)
    except MalformedLocalData as e:
        die(str(e))


if __name__ == "__main__":
    main()

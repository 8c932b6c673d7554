#!/usr/bin/env python3
"""Navigation menus: remote fetch, flattening, leaf collection.

Fetch order:
  1. /menu                -> menus/root.json
  2. /menu/<collection>   -> menus/<collection>.json, for each major collection
  3. every `branch` child, recursively -> menus/<branch uid>.json
  4. suttaplex documents for the first N leaves found (sample) -> suttaplex/<uid>.json
  5. flatten: any menu file below menus/ is moved to menus/ itself, then empty
     directories are removed bottom-up.

A failed fetch of one menu is logged and skipped; its subtree is simply not
refreshed.

Usage:
    sc-fetch-menus [--base-dir DIR] [--config FILE] [--flatten-only]
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Iterable, List, Optional

from .common import die, log, read_json, write_json
from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData, NotFound
from .remote import RemoteClient, first_document

ROOT_MENU = "root"


# ─── Fetch ────────────────────────────────────────────────────────────────

def fetch_branches(client: RemoteClient, node: Any, menus_dir: Path) -> int:
    """Fetch and save every branch below `node`, depth-first. Returns files saved."""
    saved = 0
    for child in (node or {}).get("children") or []:
        if child.get("node_type") != "branch":
            continue
        uid = child.get("uid")
        if not uid:
            continue
        client.pause()
        fetched = first_document(client.fetch_menu(uid))
        if not fetched:
            continue
        write_json(menus_dir / f"{uid}.json", fetched)
        log(f"Saved: {uid}.json")
        saved += 1 + fetch_branches(client, fetched, menus_dir)
    return saved


def fetch_root_menu(client: RemoteClient, menus_dir: Path) -> Optional[Any]:
    log("Fetching Root Menu...")
    data = client.fetch_root_menu()
    if data is not None:
        write_json(menus_dir / f"{ROOT_MENU}.json", data)
        log("Saved root.json")
    return data


def fetch_collection(client: RemoteClient, uid: str, menus_dir: Path) -> int:
    log(f"Processing collection: {uid}")
    data = client.fetch_menu(uid)
    if data is None:
        return 0
    write_json(menus_dir / f"{uid}.json", data)
    saved = 1 + fetch_branches(client, first_document(data), menus_dir)
    log(f"Completed processing for {uid} ({saved} menu files)")
    return saved


def top_level_leaves(menus_dir: Path) -> List[str]:
    """Leaf uids that are direct children of a saved menu (suttaplex sample source)."""
    out: List[str] = []
    for fp in sorted(menus_dir.glob("*.json")):
        try:
            node = first_document(read_json(fp))
        except (OSError, json.JSONDecodeError):
            continue
        for child in (node or {}).get("children") or []:
            if child.get("node_type") == "leaf" and child.get("uid"):
                out.append(child["uid"])
    return out


def fetch_suttaplex_sample(client: RemoteClient, menus_dir: Path, suttaplex_dir: Path, limit: int) -> int:
    if limit <= 0:
        return 0
    uids = top_level_leaves(menus_dir)
    log(f"Found {len(uids)} potential suttas. Fetching suttaplex (limited to first {limit})...")
    saved = 0
    for uid in uids[:limit]:
        data = client.fetch_suttaplex(uid)
        if data is not None:
            write_json(suttaplex_dir / f"{uid}.json", data)
            log(f"Saved Suttaplex: {uid}")
            saved += 1
        client.pause()
    return saved


def fetch_all_menus(settings, client: RemoteClient) -> int:
    """Refresh the whole navigation tree and flatten it. Returns menu files saved."""
    log("Starting Master Fetch...")
    menus_dir = settings.menus_dir
    menus_dir.mkdir(parents=True, exist_ok=True)
    saved = 1 if fetch_root_menu(client, menus_dir) is not None else 0
    for uid in settings.major_collections:
        saved += fetch_collection(client, uid, menus_dir)
    fetch_suttaplex_sample(client, menus_dir, settings.suttaplex_dir, settings.suttaplex_sample_limit)
    flatten_menus(menus_dir)
    log(f"Master fetch complete ({saved} menu files).")
    return saved


# ─── Flatten ──────────────────────────────────────────────────────────────

def nested_menu_files(menus_dir: Path) -> List[Path]:
    out: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(menus_dir):
        dirnames.sort()
        if Path(dirpath) == menus_dir:
            continue
        out.extend(Path(dirpath) / fn for fn in sorted(filenames) if fn.endswith(".json"))
    return out


def remove_empty_dirs(directory: Path, keep: Path) -> int:
    """Remove empty directories under `directory` bottom-up; `keep` itself survives."""
    if not directory.is_dir():
        return 0
    removed = 0
    for child in sorted(directory.iterdir()):
        if child.is_dir() and not child.is_symlink():
            removed += remove_empty_dirs(child, keep)
    if directory != keep and not any(directory.iterdir()):
        directory.rmdir()
        log(f"Removed empty dir: {directory}")
        removed += 1
    return removed


def flatten_menus(menus_dir: Path) -> int:
    """Move every nested menu file directly under menus_dir. Returns files moved."""
    files = nested_menu_files(menus_dir)
    log(f"Found {len(files)} files to move.")
    for fp in files:
        dest = menus_dir / fp.name
        if dest.exists():
            log(f"File {fp.name} already exists in root menus/. Overwriting.", "WARN")
        os.replace(fp, dest)
    log("Files moved. Removing empty directories...")
    remove_empty_dirs(menus_dir, menus_dir)
    log("Flattening complete.")
    return len(files)


# ─── Read side ────────────────────────────────────────────────────────────

def iter_leaf_uids(nodes: Iterable[Any]) -> Iterable[str]:
    for node in nodes:
        if not isinstance(node, dict):
            continue
        if node.get("node_type") == "leaf" and node.get("uid"):
            yield node["uid"]
        yield from iter_leaf_uids(node.get("children") or [])


def collect_leaf_uids(menus_dir: Path) -> List[str]:
    """Union of leaf uids over every menu document, in first-seen order."""
    seen: dict[str, None] = {}
    if not menus_dir.is_dir():
        log(f"Menus directory not found: {menus_dir}", "WARN")
        return []
    for fp in sorted(menus_dir.glob("*.json")):
        try:
            content = read_json(fp)
        except (OSError, json.JSONDecodeError) as e:
            log(f"Skipping unreadable menu {fp.name}: {e}", "WARN")
            continue
        nodes = content if isinstance(content, list) else [content]
        for uid in iter_leaf_uids(nodes):
            seen.setdefault(uid, None)
    return list(seen)


def load_menu(menus_dir: Path, uid: str = ROOT_MENU) -> Any:
    """Return the saved menu for `uid` (root menu by default)."""
    fp = menus_dir / f"{uid}.json"
    if not fp.is_file():
        raise NotFound(uid, what="Menu")
    try:
        return read_json(fp)
    except json.JSONDecodeError as e:
        raise MalformedLocalData(f"Failed to parse menu file {fp.name}: {e}", path=fp) from e


def main() -> None:
    ap = argparse.ArgumentParser(description="Fetch and flatten navigation menus")
    add_settings_args(ap)
    ap.add_argument("--flatten-only", action="store_true", help="Skip fetching; only flatten menus/")
    args = ap.parse_args()
    try:
        settings = settings_from_args(args)
    except MalformedLocalData as e:
        die(str(e))
    if args.flatten_only:
        flatten_menus(settings.menus_dir)
        return
    with RemoteClient.from_settings(settings) as client:
        fetch_all_menus(settings, client)


if __name__ == "__main__":
    main()

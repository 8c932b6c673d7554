#!/usr/bin/env python3
"""Environment sanity-check for the offline corpus tooling.

Checks:
- Python version (>= 3.9)
- Required dependencies importable (httpx, PyYAML, jsonschema), with installed versions
- `git` on PATH (corpus sync shells out to it)
- Base directory layout (informational: corpus clone, index, bundle)

Usage:
    sc-check-env [--base-dir DIR] [--config FILE]
"""

from __future__ import annotations

import argparse
import importlib
import platform
import shutil
import sys
from importlib import metadata
from typing import List, Optional, Tuple

from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData

MIN_PY = (3, 9)

REQUIRED = [
    ("httpx", "httpx"),
    ("yaml", "PyYAML"),
    ("jsonschema", "jsonschema"),
]


def get_installed_version(dist_name: str) -> Optional[str]:
    try:
        return metadata.version(dist_name)
    except metadata.PackageNotFoundError:
        return None


def check_python_version(version_info=None) -> List[str]:
    v = version_info or sys.version_info
    if tuple(v[:2]) < MIN_PY:
        return [f"Python >= {MIN_PY[0]}.{MIN_PY[1]} required; found {v[0]}.{v[1]}."]
    return []


def check_import(module: str, pip_name: str) -> Tuple[bool, Optional[str]]:
    try:
        importlib.import_module(module)
        return True, None
    except ImportError as e:
        return False, f"Missing module '{module}'. Install '{pip_name}' (pip install -e .). ({e})"


def check_git() -> List[str]:
    if shutil.which("git") is None:
        return ["`git` not found on PATH; corpus sync cannot run."]
    return []


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser(description="Check the runtime environment")
    add_settings_args(ap)
    args = ap.parse_args(argv)

    print("Offline corpus environment check")
    print("-" * 72)
    print(f"Python: {sys.executable}")
    print(f"Python version: {sys.version.splitlines()[0]}")
    print(f"OS: {platform.system()} {platform.release()}")

    issues: List[str] = []
    issues.extend(check_python_version())
    for mod, pip_name in REQUIRED:
        ok, msg = check_import(mod, pip_name)
        if not ok and msg:
            issues.append(msg)
        else:
            print(f"  - {pip_name}: {get_installed_version(pip_name) or 'unknown version'}")
    issues.extend(check_git())

    try:
        settings = settings_from_args(args)
    except MalformedLocalData as e:
        issues.append(str(e))
        settings = None
    if settings is not None:
        print(f"\nBase dir: {settings.base_dir}")
        for label, path in (("Corpus clone", settings.corpus_dir / ".git"),
                            ("Sutta index", settings.index_path),
                            ("Bundle", settings.bundle_path)):
            print(f"  - {label}: {'present' if path.exists() else 'missing'} ({path})")

    print("\nResult:")
    if issues:
        print("ENV CHECK: FAIL")
        for i in issues:
            print(f"- {i}")
        print("\nFix:")
        print("  python -m pip install -e .")
        raise SystemExit(2)
    print("ENV CHECK: PASS")
    print("Next:")
    print("  sc-build-pipeline")


if __name__ == "__main__":
    main()

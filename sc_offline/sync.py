"""Corpus sync over the `git` CLI (shallow clone of the `published` branch)."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from .common import log

UP_TO_DATE_MARKERS = ("Already up to date", "Already up-to-date")

GIT_TIMEOUT_SECONDS = 1800


def git(*args, cwd: Optional[Path] = None, check: bool = True, timeout: int = GIT_TIMEOUT_SECONDS) -> str:
    """Run a git command and return stdout."""
    log(f"> [EXEC] git {' '.join(args)} (cwd: {cwd})")
    result = subprocess.run(
        ["git"] + list(args),
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True, text=True, encoding="utf-8",
        timeout=timeout,
    )
    if check and result.returncode != 0:
        raise RuntimeError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout.strip()


class GitSync:
    def __init__(self, repo_dir: Path, url: str, branch: str = "published") -> None:
        self.repo_dir = Path(repo_dir)
        self.url = url
        self.branch = branch

    @classmethod
    def from_settings(cls, settings) -> "GitSync":
        return cls(settings.corpus_dir, settings.corpus_repo_url, settings.corpus_branch)

    def is_initialized(self) -> bool:
        return (self.repo_dir / ".git").exists()

    def fresh_clone(self) -> None:
        parent = self.repo_dir.parent
        parent.mkdir(parents=True, exist_ok=True)
        git("clone", "--branch", self.branch, "--depth", "1", self.url, self.repo_dir.name, cwd=parent)

    def pull(self) -> bool:
        """Pull the branch; True if new commits arrived."""
        out = git("pull", "origin", self.branch, cwd=self.repo_dir)
        if out:
            log(out)
        return not any(marker in out for marker in UP_TO_DATE_MARKERS)

    def revision(self) -> str:
        return git("rev-parse", "HEAD", cwd=self.repo_dir)

    def revision_timestamp(self) -> str:
        return git("show", "-s", "--format=%cI", "HEAD", cwd=self.repo_dir)

"""Settings for the offline corpus tooling.

Defaults reproduce the deployed layout:

    <base>/data/bilara-data-published/   published corpus (git clone, branch `published`)
    <base>/data/menus/                   flat navigation-menu documents
    <base>/data/generated/               derived index (sutta_index.json)
    <base>/public/                       data.zip + data.json (version stamp)

Overrides come from a YAML file, looked up in this order:
  1. explicit path (`--config`)
  2. $SC_OFFLINE_CONFIG
  3. <base>/sc_offline.yaml

Relative paths in the YAML file are resolved against the base directory.
The base directory is `--base-dir`, else $SC_OFFLINE_HOME, else the cwd.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .errors import MalformedLocalData
from .validation import CONFIG_SCHEMA, validate

CONFIG_FILENAME = "sc_offline.yaml"

API_BASE = "https://suttacentral.net/api"
CORPUS_REPO_URL = "https://github.com/suttacentral/bilara-data.git"
CORPUS_BRANCH = "published"

MAJOR_COLLECTIONS = [
    "long",
    "middle",
    "linked",
    "numbered",
    "minor",
    "vinaya",
    "abhidhamma",
]

# facet directory -> locale subdirectories that survive pruning
PRUNE_KEEP = {
    "root": ["pli"],
    "translation": ["en"],
    "html": ["pli"],
    "comment": ["en"],
    "variant": ["pli"],
    "reference": ["pli"],
}

PRUNE_FILES = [
    "_category.json",
    "_edition.json",
    "_language.json",
    "_project.json",
    "_project-v2.json",
    "_publication-v2.json",
]

PRUNE_DIRS = ["_publication"]

BUNDLE_EXCLUDE = [".git", "node_modules", "generated", "menus"]

_PATH_FIELDS = ("data_dir", "corpus_dir", "menus_dir", "generated_dir", "public_dir")


@dataclass
class Settings:
    base_dir: Path
    data_dir: Optional[Path] = None
    corpus_dir: Optional[Path] = None
    menus_dir: Optional[Path] = None
    generated_dir: Optional[Path] = None
    public_dir: Optional[Path] = None

    api_base: str = API_BASE
    corpus_repo_url: str = CORPUS_REPO_URL
    corpus_branch: str = CORPUS_BRANCH

    root_lang: str = "pli"
    root_author: str = "ms"
    translation_lang: str = "en"
    legacy_lang: str = "en"
    primary_author: str = "sujato"
    secondary_author: str = "brahmali"

    major_collections: List[str] = field(default_factory=lambda: list(MAJOR_COLLECTIONS))
    request_delay: float = 0.2
    request_timeout: float = 30.0
    legacy_flush_every: int = 10
    suttaplex_sample_limit: int = 20

    prune_keep: Dict[str, List[str]] = field(default_factory=lambda: {k: list(v) for k, v in PRUNE_KEEP.items()})
    prune_files: List[str] = field(default_factory=lambda: list(PRUNE_FILES))
    prune_dirs: List[str] = field(default_factory=lambda: list(PRUNE_DIRS))
    bundle_exclude: List[str] = field(default_factory=lambda: list(BUNDLE_EXCLUDE))
    bundle_name: str = "data.zip"
    version_name: str = "data.json"
    log_capacity: int = 1000

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir).resolve()
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            if value is not None:
                p = Path(value)
                setattr(self, name, p if p.is_absolute() else self.base_dir / p)
        if self.data_dir is None:
            self.data_dir = self.base_dir / "data"
        if self.corpus_dir is None:
            self.corpus_dir = self.data_dir / "bilara-data-published"
        if self.menus_dir is None:
            self.menus_dir = self.data_dir / "menus"
        if self.generated_dir is None:
            self.generated_dir = self.data_dir / "generated"
        if self.public_dir is None:
            self.public_dir = self.base_dir / "public"

    # --- facet trees ---

    @property
    def root_tail(self) -> str:
        return f"{self.root_lang}-{self.root_author}"

    @property
    def root_dir(self) -> Path:
        return self.corpus_dir / "root" / self.root_lang / self.root_author

    @property
    def translation_dir(self) -> Path:
        return self.corpus_dir / "translation" / self.translation_lang

    @property
    def html_dir(self) -> Path:
        return self.corpus_dir / "html" / self.root_lang / self.root_author

    @property
    def comment_dir(self) -> Path:
        return self.corpus_dir / "comment" / self.translation_lang

    @property
    def variant_dir(self) -> Path:
        return self.corpus_dir / "variant" / self.root_lang / self.root_author

    @property
    def reference_dir(self) -> Path:
        return self.corpus_dir / "reference" / self.root_lang / self.root_author

    # --- artifacts ---

    @property
    def index_path(self) -> Path:
        return self.generated_dir / "sutta_index.json"

    @property
    def legacy_dir(self) -> Path:
        return self.corpus_dir / "legacy"

    @property
    def legacy_map_path(self) -> Path:
        return self.corpus_dir / "legacy_sutta_map.json"

    @property
    def author_meta_path(self) -> Path:
        return self.corpus_dir / "_author.json"

    @property
    def publication_meta_path(self) -> Path:
        return self.corpus_dir / "_publication.json"

    @property
    def suttaplex_dir(self) -> Path:
        return self.data_dir / "suttaplex"

    @property
    def bundle_path(self) -> Path:
        return self.public_dir / self.bundle_name

    @property
    def version_path(self) -> Path:
        return self.public_dir / self.version_name


def find_config_file(base_dir: Path, explicit: Optional[str] = None) -> Optional[Path]:
    if explicit:
        return Path(explicit)
    env = os.environ.get("SC_OFFLINE_CONFIG")
    if env:
        return Path(env)
    candidate = base_dir / CONFIG_FILENAME
    return candidate if candidate.exists() else None


def load_settings(base_dir: Optional[str] = None, config_path: Optional[str] = None) -> Settings:
    """Build Settings from defaults plus the optional YAML override file."""
    base = Path(base_dir or os.environ.get("SC_OFFLINE_HOME") or os.getcwd()).resolve()
    cfg_file = find_config_file(base, config_path)
    overrides = {}
    if cfg_file is not None:
        if not cfg_file.exists():
            raise MalformedLocalData(f"Config file not found: {cfg_file}", path=cfg_file)
        with open(cfg_file, encoding="utf-8") as f:
            try:
                overrides = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise MalformedLocalData(f"Config file is not valid YAML: {e}", path=cfg_file) from e
        validate(overrides, CONFIG_SCHEMA, path=cfg_file)
    known = {f.name for f in fields(Settings)} - {"base_dir"}
    return Settings(base_dir=base, **{k: v for k, v in overrides.items() if k in known})


def add_settings_args(parser) -> None:
    """Register the --base-dir / --config options every CLI shares."""
    parser.add_argument("--base-dir", default=None,
                        help="Deployment root (default: $SC_OFFLINE_HOME or cwd)")
    parser.add_argument("--config", default=None,
                        help=f"YAML override file (default: <base-dir>/{CONFIG_FILENAME})")


def settings_from_args(args) -> Settings:
    return load_settings(base_dir=args.base_dir, config_path=args.config)

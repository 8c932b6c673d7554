#!/usr/bin/env python3
"""Facet resolver: one sutta id -> every facet document + the chosen translator.

Translator selection, in order:
  1. the requested author, if the sutta has a translation by them
  2. the primary author (sujato)
  3. the secondary author (brahmali)
  4. the first author in the index entry
  5. none (no translations; translation/comment facets stay empty)

Each facet is loaded independently. A missing or unparsable facet file
resolves to an empty object; it never fails the bundle. Only an unknown id
raises (NotFound).

Publication metadata is matched heuristically: the first `_publication.json`
entry whose author_uid is the selected author and whose text_uid is the
collection prefix of the id (`dn1` -> `dn`). Table order decides between
several matches.

Usage:
    sc-resolve dn1 [--author sujato] [--translations]
"""

from __future__ import annotations

import argparse
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .common import die, log, read_json
from .config import add_settings_args, settings_from_args
from .errors import MalformedLocalData, NotFound
from .facet_paths import (
    FacetLayout,
    RootDocument,
    TranslationDocument,
    translation_lang_from_filename,
)
from .index_builder import load_index

_COLLECTION_SUFFIX_RE = re.compile(r"[0-9.\-].*$")


@dataclass(frozen=True)
class Facet:
    """Result of loading one facet file: present with content, or absent."""
    content: Optional[Dict[str, Any]] = None

    @property
    def present(self) -> bool:
        return self.content is not None

    def as_dict(self) -> Dict[str, Any]:
        return self.content if self.content is not None else {}


ABSENT = Facet()


def load_facet(path: Optional[Path]) -> Facet:
    if path is None or not path.is_file():
        return ABSENT
    try:
        data = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log(str(MalformedLocalData(f"Error reading JSON file {path}: {e}", path=path)), "ERROR")
        return ABSENT
    if not isinstance(data, dict):
        log(str(MalformedLocalData(f"Facet file {path} is not a JSON object", path=path)), "ERROR")
        return ABSENT
    return Facet(data)


@dataclass
class FacetBundle:
    uid: str
    author_uid: Optional[str]
    author_name: Optional[str]
    available_authors: List[str]
    root: Facet = ABSENT
    translation: Facet = ABSENT
    html: Facet = ABSENT
    comment: Facet = ABSENT
    variant: Facet = ABSENT
    reference: Facet = ABSENT
    publication: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "author_uid": self.author_uid,
            "author_name": self.author_name,
            "available_authors": list(self.available_authors),
            "root_text": self.root.as_dict(),
            "translation_text": self.translation.as_dict(),
            "html_text": self.html.as_dict(),
            "comment_text": self.comment.as_dict(),
            "variant_text": self.variant.as_dict(),
            "reference_text": self.reference.as_dict(),
            "publication_data": self.publication,
        }


def collection_prefix(uid: str) -> str:
    """`dn1` -> `dn`, `sn1.1` -> `sn`, `an1.1-10` -> `an`."""
    return _COLLECTION_SUFFIX_RE.sub("", uid)


def select_author(translations: Dict[str, str], requested: Optional[str],
                  primary: str = "sujato", secondary: str = "brahmali") -> Optional[str]:
    if not translations:
        return None
    if requested and requested in translations:
        return requested
    for candidate in (primary, secondary):
        if candidate in translations:
            return candidate
    return next(iter(translations))


def find_publication(publications: Dict[str, Any], author_uid: Optional[str], uid: str) -> Dict[str, Any]:
    if not author_uid:
        return {}
    prefix = collection_prefix(uid)
    for pub in publications.values():
        if not isinstance(pub, dict):
            continue
        if pub.get("author_uid") == author_uid and pub.get("text_uid") == prefix:
            return pub
    return {}


def _load_table(path: Path, label: str) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = read_json(path)
    except (OSError, json.JSONDecodeError) as e:
        log(f"Error loading {label} metadata {path}: {e}", "ERROR")
        return {}
    log(f"Loaded {label} metadata.")
    return data if isinstance(data, dict) else {}


class FacetResolver:
    def __init__(self, settings, index: Optional[Dict[str, Any]] = None,
                 authors: Optional[Dict[str, Any]] = None,
                 publications: Optional[Dict[str, Any]] = None) -> None:
        self.settings = settings
        self.layout = FacetLayout.from_settings(settings)
        self.index: Dict[str, Any] = index if index is not None else self._read_index()
        self.authors: Dict[str, Any] = (
            authors if authors is not None else _load_table(settings.author_meta_path, "author"))
        self.publications: Dict[str, Any] = (
            publications if publications is not None
            else _load_table(settings.publication_meta_path, "publication"))

    def _read_index(self) -> Dict[str, Any]:
        path = self.settings.index_path
        if not path.is_file():
            log("Sutta index not found. Offline data is missing.", "WARN")
            return {}
        index = load_index(path)
        log(f"Loaded index with {len(index)} entries.")
        return index

    def reload(self) -> None:
        """Re-read the index and the author/publication tables from disk."""
        self.index = self._read_index()
        self.authors = _load_table(self.settings.author_meta_path, "author")
        self.publications = _load_table(self.settings.publication_meta_path, "publication")

    def entry(self, uid: str) -> Dict[str, Any]:
        entry = self.index.get(uid)
        if entry is None:
            raise NotFound(uid)
        return entry

    def author_name(self, author_uid: Optional[str]) -> Optional[str]:
        if author_uid is None:
            return None
        meta = self.authors.get(author_uid)
        if isinstance(meta, dict) and meta.get("name"):
            return meta["name"]
        return author_uid

    def resolve(self, uid: str, requested_author: Optional[str] = None) -> FacetBundle:
        entry = self.entry(uid)
        translations = entry.get("translations") or {}
        author = select_author(translations, requested_author,
                               self.settings.primary_author, self.settings.secondary_author)
        bundle = FacetBundle(
            uid=uid,
            author_uid=author,
            author_name=self.author_name(author),
            available_authors=list(translations),
            publication=find_publication(self.publications, author, uid),
        )

        root = self._parse(RootDocument.from_relpath, entry.get("root"), self.settings.root_tail)
        if root is not None:
            bundle.root = load_facet(self.layout.root(root))
            bundle.html = load_facet(self.layout.html(root))
            bundle.variant = load_facet(self.layout.variant(root))
            bundle.reference = load_facet(self.layout.reference(root))

        if author is not None:
            doc = self._parse(TranslationDocument.from_relpath, translations[author],
                              self.settings.translation_lang)
            if doc is not None:
                bundle.translation = load_facet(self.layout.translation(author, doc))
                bundle.comment = load_facet(self.layout.comment(author, doc))
        return bundle

    def list_translations(self, uid: str) -> Dict[str, Any]:
        """Suttaplex view: every available text for `uid` (root first)."""
        entry = self.entry(uid)
        items: List[Dict[str, Any]] = []
        if entry.get("root"):
            items.append({
                "lang": self.settings.root_lang,
                "lang_name": "Pali",
                "is_root": True,
                "author_uid": self.settings.root_author,
                "author_name": self.author_name(self.settings.root_author),
                "id": f"{uid}_root-{self.settings.root_tail}",
                "segmented": True,
            })
        for author_uid, rel in (entry.get("translations") or {}).items():
            filename = Path(rel).name
            items.append({
                "lang": translation_lang_from_filename(filename, self.settings.translation_lang),
                "is_root": False,
                "author_uid": author_uid,
                "author_name": self.author_name(author_uid),
                "id": filename[: -len(".json")] if filename.endswith(".json") else filename,
                "segmented": True,
            })
        return {
            "uid": uid,
            "blurb": "Blurb not available offline",
            "translations": items,
        }

    @staticmethod
    def _parse(parser, relpath: Optional[str], arg: str):
        if not relpath:
            return None
        try:
            return parser(relpath, arg)
        except ValueError as e:
            log(f"Index path does not follow the facet naming convention: {e}", "WARN")
            return None


def main() -> None:
    ap = argparse.ArgumentParser(description="Resolve a sutta id to its facet bundle")
    add_settings_args(ap)
    ap.add_argument("uid")
    ap.add_argument("--author", default=None, help="Preferred translator (author uid)")
    ap.add_argument("--translations", action="store_true", help="List available translations instead")
    args = ap.parse_args()
    try:
        resolver = FacetResolver(settings_from_args(args))
        if args.translations:
            out = resolver.list_translations(args.uid)
        else:
            out = resolver.resolve(args.uid, args.author).to_dict()
    except (NotFound, MalformedLocalData) as e:
        die(str(e))
    print(json.dumps(out, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()

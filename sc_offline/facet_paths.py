"""Facet path inference.

Every facet tree mirrors the collection hierarchy of the root tree, so the
location of a facet document is derived from the root (or translation)
document's relative path, never from the identifier alone:

    root         sutta/dn/dn1_root-pli-ms.json
    html         sutta/dn/dn1_html.json
    variant      sutta/dn/dn1_variant-pli-ms.json
    reference    sutta/dn/dn1_reference.json

    translation  sutta/dn/dn1_translation-en-sujato.json
    comment      sutta/dn/dn1_comment-en-sujato.json

Filenames are parsed once into RootDocument / TranslationDocument; a name
that does not carry the canonical suffix is rejected there, so the
derivations below cannot produce a path from a mis-shaped name. Nothing in
this module touches the file system.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

HTML_SUFFIX = "_html.json"
REFERENCE_SUFFIX = "_reference.json"

_TRANSLATION_LANG_RE = re.compile(r"translation-([a-z]+)-")


def _split(relpath: str) -> tuple[PurePosixPath, str]:
    p = PurePosixPath(str(relpath).replace("\\", "/"))
    if not p.name:
        raise ValueError(f"Empty document path: {relpath!r}")
    return p.parent, p.name


@dataclass(frozen=True)
class RootDocument:
    """`<directory>/<uid>_root-<tail>.json`, tail e.g. `pli-ms`."""
    directory: PurePosixPath
    uid: str
    tail: str

    @classmethod
    def from_relpath(cls, relpath: str, tail: str = "pli-ms") -> "RootDocument":
        directory, name = _split(relpath)
        suffix = f"_root-{tail}.json"
        if not name.endswith(suffix) or len(name) == len(suffix):
            raise ValueError(f"Not a root document (expected *{suffix}): {relpath!r}")
        return cls(directory, name[: -len(suffix)], tail)

    @property
    def filename(self) -> str:
        return f"{self.uid}_root-{self.tail}.json"

    @property
    def relpath(self) -> PurePosixPath:
        return self.directory / self.filename


@dataclass(frozen=True)
class TranslationDocument:
    """`<directory>/<uid>_translation-<tail>.json`, tail e.g. `en-sujato`."""
    directory: PurePosixPath
    uid: str
    tail: str

    @classmethod
    def from_relpath(cls, relpath: str, lang: str = "en") -> "TranslationDocument":
        directory, name = _split(relpath)
        infix = f"_translation-{lang}-"
        if infix not in name or not name.endswith(".json"):
            raise ValueError(f"Not a translation document (expected *{infix}*.json): {relpath!r}")
        uid, rest = name.split(infix, 1)
        if not uid or rest == ".json":
            raise ValueError(f"Not a translation document (expected *{infix}*.json): {relpath!r}")
        return cls(directory, uid, f"{lang}-{rest[: -len('.json')]}")

    @property
    def lang(self) -> str:
        return self.tail.split("-", 1)[0]

    @property
    def filename(self) -> str:
        return f"{self.uid}_translation-{self.tail}.json"

    @property
    def relpath(self) -> PurePosixPath:
        return self.directory / self.filename


def html_relpath(root: RootDocument) -> PurePosixPath:
    return root.directory / f"{root.uid}{HTML_SUFFIX}"


def variant_relpath(root: RootDocument) -> PurePosixPath:
    return root.directory / f"{root.uid}_variant-{root.tail}.json"


def reference_relpath(root: RootDocument) -> PurePosixPath:
    return root.directory / f"{root.uid}{REFERENCE_SUFFIX}"


def comment_relpath(translation: TranslationDocument) -> PurePosixPath:
    return translation.directory / f"{translation.uid}_comment-{translation.tail}.json"


def translation_lang_from_filename(filename: str, default: str = "en") -> str:
    """Language code embedded in a translation filename (`dn1_translation-en-sujato.json` -> `en`)."""
    m = _TRANSLATION_LANG_RE.search(filename)
    return m.group(1) if m else default


@dataclass(frozen=True)
class FacetLayout:
    """Base directory of every facet tree.

    Translation and comment trees are split per author; the others are shared.
    """
    root_dir: Path
    translation_dir: Path
    html_dir: Path
    comment_dir: Path
    variant_dir: Path
    reference_dir: Path

    @classmethod
    def from_settings(cls, settings) -> "FacetLayout":
        return cls(
            root_dir=settings.root_dir,
            translation_dir=settings.translation_dir,
            html_dir=settings.html_dir,
            comment_dir=settings.comment_dir,
            variant_dir=settings.variant_dir,
            reference_dir=settings.reference_dir,
        )

    def root(self, doc: RootDocument) -> Path:
        return self.root_dir / doc.relpath

    def html(self, doc: RootDocument) -> Path:
        return self.html_dir / html_relpath(doc)

    def variant(self, doc: RootDocument) -> Path:
        return self.variant_dir / variant_relpath(doc)

    def reference(self, doc: RootDocument) -> Path:
        return self.reference_dir / reference_relpath(doc)

    def translation(self, author: str, doc: TranslationDocument) -> Path:
        return self.translation_dir / author / doc.relpath

    def comment(self, author: str, doc: TranslationDocument) -> Path:
        return self.comment_dir / author / comment_relpath(doc)


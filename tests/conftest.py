"""Shared fixtures: a small on-disk corpus laid out like the published clone."""

import json

import pytest

from sc_offline.config import Settings


def write_doc(path, obj):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path):
    return Settings(base_dir=tmp_path, request_delay=0)


@pytest.fixture
def corpus(settings):
    """dn1 with every facet, mn1 root-only, pj1 translation-only (brahmali)."""
    c = settings.corpus_dir
    write_doc(c / "root/pli/ms/sutta/dn/dn1_root-pli-ms.json", {"dn1:0.1": "Dīgha Nikāya 1"})
    write_doc(c / "html/pli/ms/sutta/dn/dn1_html.json", {"dn1:0.1": "<p>{}</p>"})
    write_doc(c / "variant/pli/ms/sutta/dn/dn1_variant-pli-ms.json", {"dn1:1.1": "evaṁ → evam (bj)"})
    write_doc(c / "reference/pli/ms/sutta/dn/dn1_reference.json", {"dn1:1.1": "pts-vp-pli1.1"})
    write_doc(c / "translation/en/sujato/sutta/dn/dn1_translation-en-sujato.json",
              {"dn1:0.1": "Long Discourses 1"})
    write_doc(c / "comment/en/sujato/sutta/dn/dn1_comment-en-sujato.json",
              {"dn1:1.1": "A note."})

    write_doc(c / "root/pli/ms/sutta/mn/mn1_root-pli-ms.json", {"mn1:0.1": "Majjhima Nikāya 1"})

    write_doc(c / "translation/en/brahmali/vinaya/pli-tv-bu-vb/pli-tv-bu-vb-pj1_translation-en-brahmali.json",
              {"pli-tv-bu-vb-pj1:0.1": "Expulsion 1"})

    write_doc(c / "_author.json", {
        "sujato": {"name": "Bhikkhu Sujato"},
        "brahmali": {"name": "Bhikkhu Brahmali"},
        "ms": {"name": "Mahāsaṅgīti"},
    })
    write_doc(c / "_publication.json", {
        "scpub1": {"author_uid": "sujato", "text_uid": "dn", "publication_number": "scpub1"},
        "scpub2": {"author_uid": "sujato", "text_uid": "mn", "publication_number": "scpub2"},
    })
    return c

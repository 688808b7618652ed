from __future__ import annotations

import yaml
from zotnotes.formatting.metadata import (
    extract_citekey,
    extract_metadata,
    format_authors,
    format_creator,
    item_title,
)
from zotnotes.models import BibliographicItem, Creator
from zotnotes.plugins.markdown import MARKDOWN_DIALECT
from zotnotes.plugins.org import ORG_DIALECT

FULL_FIELDS = {
    "title": "Deep Learning",
    "date": "2020",
    "publicationTitle": "Nature",
    "DOI": "10.1/x",
    "url": "https://example.org",
    "abstractNote": "An abstract.",
    "extra": "Citation Key: smith2020",
}
AUTHORS = (
    Creator("author", last_name="Smith", first_name="John"),
    Creator("editor", last_name="Miller", first_name="Ann"),
    Creator("author", last_name="Doe", first_name="Jane"),
)


def _item(**overrides: object) -> BibliographicItem:
    values: dict[str, object] = {
        "item_id": 1,
        "key": "KEY1",
        "item_type": "journalArticle",
        "fields": FULL_FIELDS,
        "creators": AUTHORS,
    }
    values.update(overrides)
    return BibliographicItem(**values)


def test_extract_citekey() -> None:
    assert extract_citekey("Citation Key: smith2020") == "smith2020"
    assert extract_citekey("PMID: 1\ncitation key:  doe2019  \nother") == "doe2019"
    assert extract_citekey("no key here") is None
    assert extract_citekey("") is None
    assert extract_citekey(None) is None


def test_authors_only_include_author_role() -> None:
    assert format_authors(AUTHORS) == "Smith, John; Doe, Jane"


def test_format_creator_variants() -> None:
    assert format_creator(Creator("author", name="WHO")) == "WHO"
    assert format_creator(Creator("author", last_name="Solo")) == "Solo, "
    assert format_creator(Creator("author")) == ""


def test_org_header_with_all_fields() -> None:
    assert ORG_DIALECT.format_metadata(_item()) == (
        "* Deep Learning\n"
        ":PROPERTIES:\n"
        ":AUTHOR: Smith, John; Doe, Jane\n"
        ":DATE: 2020\n"
        ":PUBLICATION: Nature\n"
        ":DOI: 10.1/x\n"
        ":URL: https://example.org\n"
        ":ZOTERO_KEY: KEY1\n"
        ":CUSTOM_ID: smith2020\n"
        ":END:\n"
        "\n"
        "** Abstract\n"
        "An abstract.\n"
        "\n"
        "** Annotations\n"
        "\n"
    )


def test_org_header_skips_empty_fields() -> None:
    item = _item(fields={}, creators=())
    assert ORG_DIALECT.format_metadata(item) == (
        "* Untitled\n:PROPERTIES:\n:ZOTERO_KEY: KEY1\n:END:\n\n** Annotations\n\n"
    )


def test_unsupported_fields_are_skipped() -> None:
    item = _item(defined_fields=frozenset({"title", "date"}))
    meta = extract_metadata(item)
    assert meta.title == "Deep Learning"
    assert meta.date == "2020"
    assert meta.publication == ""
    assert meta.abstract == ""
    assert meta.citekey == ""

    header = ORG_DIALECT.format_metadata(item)
    assert ":PUBLICATION:" not in header
    assert "** Abstract" not in header


def test_item_title() -> None:
    assert item_title(_item()) == "Deep Learning"
    assert item_title(None) == ""
    assert item_title(_item(defined_fields=frozenset())) == ""


def test_markdown_header_layout() -> None:
    header = MARKDOWN_DIALECT.format_metadata(_item())
    assert header.startswith('---\ntitle: "Deep Learning"\n')
    assert header.endswith(
        "---\n\n# Deep Learning\n\n## Abstract\n\nAn abstract.\n\n## Annotations\n\n"
    )


def test_markdown_front_matter_parses_as_yaml() -> None:
    tricky = dict(FULL_FIELDS, title='He said "hi" \\ then: left')
    header = MARKDOWN_DIALECT.format_metadata(_item(fields=tricky))

    _, front_matter, _ = header.split("---\n", 2)
    data = yaml.safe_load(front_matter)

    assert data == {
        "title": 'He said "hi" \\ then: left',
        "author": "Smith, John; Doe, Jane",
        "date": "2020",
        "publication": "Nature",
        "doi": "10.1/x",
        "url": "https://example.org",
        "zotero_key": "KEY1",
        "citekey": "smith2020",
    }


def test_markdown_header_without_fields() -> None:
    item = _item(fields={}, creators=())
    assert MARKDOWN_DIALECT.format_metadata(item) == (
        '---\nzotero_key: "KEY1"\n---\n\n# Untitled\n\n## Annotations\n\n'
    )

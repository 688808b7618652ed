from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Sequence

import pytest
from peewee import SqliteDatabase
from zotnotes.plugins import manager as plugin_manager
from zotnotes.services import export as export_service
from zotnotes.storage import (
    ZOTERO_MODELS,
    Creators,
    CreatorTypes,
    Fields,
    Groups,
    ItemAnnotations,
    ItemAttachments,
    ItemCreators,
    ItemData,
    ItemDataValues,
    Items,
    ItemTags,
    ItemTypes,
    Storage,
    Tags,
)

PDF = "application/pdf"
EPUB = "application/epub+zip"

ANNOTATION_TYPES = {
    "highlight": 1,
    "note": 2,
    "image": 3,
    "ink": 4,
    "underline": 5,
    "text": 6,
}


def rect_position(page_index: int, y: float) -> str:
    return json.dumps({"pageIndex": page_index, "rects": [[100, y, 300, y + 12]]})


class ZoteroBuilder:
    """Writes rows into a Zotero-shaped SQLite file for tests."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.db = SqliteDatabase(str(path))
        with self.db.bind_ctx(ZOTERO_MODELS):
            self.db.create_tables(ZOTERO_MODELS)

    def _item_type(self, name: str) -> ItemTypes:
        item_type, _ = ItemTypes.get_or_create(type_name=name)
        return item_type

    def add_item(
        self,
        key: str,
        *,
        item_type: str = "journalArticle",
        library_id: int = 1,
        fields: dict[str, str] | None = None,
        creators: Sequence[tuple[str, str, str | None]] = (),
    ) -> int:
        with self.db.bind_ctx(ZOTERO_MODELS):
            item = Items.create(
                item_type=self._item_type(item_type), key=key, library_id=library_id
            )
            for name, value in (fields or {}).items():
                field, _ = Fields.get_or_create(field_name=name)
                data_value, _ = ItemDataValues.get_or_create(value=value)
                ItemData.insert(
                    item=item.id, field=field.id, value=data_value.id
                ).execute()
            for index, (role, last, first) in enumerate(creators):
                creator_type, _ = CreatorTypes.get_or_create(creator_type=role)
                if first is None:
                    creator = Creators.create(last_name=last, field_mode=1)
                else:
                    creator = Creators.create(
                        last_name=last, first_name=first, field_mode=0
                    )
                ItemCreators.insert(
                    item=item.id,
                    creator=creator.id,
                    creator_type=creator_type.id,
                    order_index=index,
                ).execute()
            return item.id

    def add_attachment(
        self,
        parent_id: int | None,
        key: str,
        *,
        content_type: str = PDF,
        path: str | None = "storage:paper.pdf",
        library_id: int = 1,
    ) -> int:
        with self.db.bind_ctx(ZOTERO_MODELS):
            item = Items.create(
                item_type=self._item_type("attachment"),
                key=key,
                library_id=library_id,
            )
            ItemAttachments.insert(
                item=item.id,
                parent_item=parent_id,
                link_mode=0,
                content_type=content_type,
                path=path,
            ).execute()
            return item.id

    def add_annotation(
        self,
        attachment_id: int,
        key: str,
        *,
        kind: str = "highlight",
        text: str | None = None,
        comment: str | None = None,
        page_label: str | None = "1",
        sort_index: str | None = None,
        position: str | None = None,
        tags: tuple[str, ...] = (),
        library_id: int = 1,
    ) -> int:
        with self.db.bind_ctx(ZOTERO_MODELS):
            item = Items.create(
                item_type=self._item_type("annotation"),
                key=key,
                library_id=library_id,
            )
            ItemAnnotations.insert(
                item=item.id,
                parent_item=attachment_id,
                type=ANNOTATION_TYPES.get(kind, 99),
                text=text,
                comment=comment,
                color="#ffd400",
                page_label=page_label,
                sort_index=sort_index,
                position=position,
            ).execute()
            for name in tags:
                tag, _ = Tags.get_or_create(name=name)
                ItemTags.insert(item=item.id, tag=tag.id).execute()
            return item.id

    def add_group(self, group_id: int, library_id: int) -> None:
        with self.db.bind_ctx(ZOTERO_MODELS):
            Groups.insert(id=group_id, library_id=library_id, name="Lab").execute()

    def close(self) -> None:
        self.db.close()


def build_sample_library(builder: ZoteroBuilder) -> None:
    """A small library covering PDF, EPUB, group and empty cases."""

    article = builder.add_item(
        "ARTICLE1",
        fields={
            "title": "Deep Learning: A Review",
            "date": "2020-01-15",
            "publicationTitle": "Nature",
            "DOI": "10.1038/nature14539",
            "url": "https://example.org/deep",
            "abstractNote": "We review deep learning.",
            "extra": "Citation Key: smith2020\nPMID: 123",
        },
        creators=[
            ("author", "Smith", "John"),
            ("author", "Doe", "Jane"),
            ("editor", "Miller", "Ann"),
        ],
    )
    pdf = builder.add_attachment(article, "PDFATT01", path="storage:paper.pdf")
    builder.add_annotation(
        pdf,
        "ANNPAGE2",
        text="  Second page highlight  ",
        page_label="2",
        sort_index="00001|000100|00200",
        position=rect_position(1, 396),
    )
    builder.add_annotation(
        pdf,
        "ANNNOTE1",
        kind="note",
        comment="A sticky note",
        page_label="1",
        sort_index="00000|000050|00100",
        tags=("todo",),
    )
    builder.add_annotation(
        pdf,
        "ANNFIRST",
        text="First highlight",
        comment="Why does this matter?",
        page_label="1",
        sort_index="00000|000010|00050",
        position=rect_position(0, 0.25),
        tags=("key idea", "ml"),
    )
    builder.add_annotation(
        pdf,
        "ANNIMG10",
        kind="image",
        page_label="10",
        sort_index="00009|000000|00000",
    )
    builder.add_attachment(
        article, "HTMLSNAP", content_type="text/html", path="storage:page.html"
    )

    book = builder.add_item(
        "EMPTYBK1",
        item_type="book",
        fields={"title": "Unread Book", "extra": "Citation Key: empty2021"},
        creators=[("author", "Solo", None)],
    )
    builder.add_attachment(book, "EMPTYPDF", path="storage:book.pdf")

    builder.add_group(555, 2)
    chapter = builder.add_item(
        "EPUBITEM",
        library_id=2,
        fields={"title": "Reading in Groups", "extra": "citation key: group2022"},
        creators=[("author", "Reader", "Rita")],
    )
    epub = builder.add_attachment(
        chapter,
        "EPUBATT1",
        content_type=EPUB,
        path="storage:book.epub",
        library_id=2,
    )
    builder.add_annotation(
        epub,
        "EPUBANN1",
        text="An EPUB passage",
        page_label="",
        sort_index="00012|00000",
        library_id=2,
    )

    builder.add_item("NOFILES1", fields={"title": "No Files"})


@pytest.fixture(autouse=True)
def reset_export_registry() -> Iterator[None]:
    """Ensure plugin discovery cache is cleared between tests."""

    export_service.clear_export_registry_cache()
    plugin_manager.reset_plugin_manager_cache()
    yield
    export_service.clear_export_registry_cache()
    plugin_manager.reset_plugin_manager_cache()


@pytest.fixture
def zotero_dir(tmp_path: Path) -> Path:
    data_dir = tmp_path / "Zotero"
    data_dir.mkdir()
    builder = ZoteroBuilder(data_dir / "zotero.sqlite")
    build_sample_library(builder)
    builder.close()
    return data_dir


@pytest.fixture
def storage(zotero_dir: Path) -> Storage:
    storage = Storage(zotero_dir / "zotero.sqlite")
    storage.initialize()
    return storage


@pytest.fixture
def zotero_builder(tmp_path: Path) -> Iterator[ZoteroBuilder]:
    """An empty Zotero-shaped database for tests that need custom rows."""

    target = tmp_path / "custom"
    target.mkdir()
    builder = ZoteroBuilder(target / "zotero.sqlite")
    yield builder
    builder.close()

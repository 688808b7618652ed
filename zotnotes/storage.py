"""Peewee-backed read access to a Zotero SQLite database."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from peewee import (
    AutoField,
    CompositeKey,
    DatabaseError,
    ForeignKeyField,
    IntegerField,
    Model,
    SqliteDatabase,
    TextField,
    fn,
)

from .formatting.metadata import extract_citekey
from .models import (
    SUPPORTED_CONTENT_TYPES,
    Annotation,
    Attachment,
    BibliographicItem,
    Creator,
)

logger = logging.getLogger(__name__)

DB_FILENAME = "zotero.sqlite"

ATTACHMENT_TYPE = "attachment"
NON_REGULAR_TYPES = frozenset({ATTACHMENT_TYPE, "note", "annotation"})

ANNOTATION_KINDS = {
    1: "highlight",
    2: "note",
    3: "image",
    4: "ink",
    5: "underline",
    6: "text",
}

STORAGE_PREFIX = "storage:"
ATTACHMENTS_PREFIX = "attachments:"
SINGLE_FIELD_MODE = 1


class StorageError(RuntimeError):
    """Raised when reading the Zotero database fails."""


class StorageDatabase(SqliteDatabase):
    """SqliteDatabase opened through a read-only URI.

    ``immutable=1`` lets us read while Zotero holds its lock on the file.
    """

    def __init__(self, path: Path, *, read_only: bool = True) -> None:
        if read_only:
            target = f"file:{path.resolve()}?mode=ro&immutable=1"
            super().__init__(target, uri=True, check_same_thread=False)
        else:
            super().__init__(str(path), check_same_thread=False)


class ZoteroModel(Model):
    """Base model bound to the storage database at call time."""

    class Meta:
        database = SqliteDatabase(None)


class ItemTypes(ZoteroModel):
    id = AutoField(column_name="itemTypeID")
    type_name = TextField(column_name="typeName", unique=True)

    class Meta:
        table_name = "itemTypes"


class Items(ZoteroModel):
    id = AutoField(column_name="itemID")
    item_type = ForeignKeyField(ItemTypes, column_name="itemTypeID", backref="+")
    library_id = IntegerField(column_name="libraryID", default=1)
    key = TextField()

    class Meta:
        table_name = "items"


class Fields(ZoteroModel):
    id = AutoField(column_name="fieldID")
    field_name = TextField(column_name="fieldName", unique=True)

    class Meta:
        table_name = "fields"


class ItemTypeFields(ZoteroModel):
    item_type = ForeignKeyField(ItemTypes, column_name="itemTypeID", backref="+")
    field = ForeignKeyField(Fields, column_name="fieldID", backref="+")
    order_index = IntegerField(column_name="orderIndex", default=0)

    class Meta:
        table_name = "itemTypeFields"
        primary_key = CompositeKey("item_type", "field")


class BaseFieldMappings(ZoteroModel):
    item_type = ForeignKeyField(ItemTypes, column_name="itemTypeID", backref="+")
    base_field = ForeignKeyField(Fields, column_name="baseFieldID", backref="+")
    field = ForeignKeyField(Fields, column_name="fieldID", backref="+")

    class Meta:
        table_name = "baseFieldMappings"
        primary_key = CompositeKey("item_type", "base_field", "field")


class ItemDataValues(ZoteroModel):
    id = AutoField(column_name="valueID")
    value = TextField(unique=True)

    class Meta:
        table_name = "itemDataValues"


class ItemData(ZoteroModel):
    item = ForeignKeyField(Items, column_name="itemID", backref="+")
    field = ForeignKeyField(Fields, column_name="fieldID", backref="+")
    value = ForeignKeyField(ItemDataValues, column_name="valueID", backref="+")

    class Meta:
        table_name = "itemData"
        primary_key = CompositeKey("item", "field")


class CreatorTypes(ZoteroModel):
    id = AutoField(column_name="creatorTypeID")
    creator_type = TextField(column_name="creatorType", unique=True)

    class Meta:
        table_name = "creatorTypes"


class Creators(ZoteroModel):
    id = AutoField(column_name="creatorID")
    first_name = TextField(column_name="firstName", null=True)
    last_name = TextField(column_name="lastName", null=True)
    field_mode = IntegerField(column_name="fieldMode", null=True)

    class Meta:
        table_name = "creators"


class ItemCreators(ZoteroModel):
    item = ForeignKeyField(Items, column_name="itemID", backref="+")
    creator = ForeignKeyField(Creators, column_name="creatorID", backref="+")
    creator_type = ForeignKeyField(
        CreatorTypes, column_name="creatorTypeID", backref="+"
    )
    order_index = IntegerField(column_name="orderIndex", default=0)

    class Meta:
        table_name = "itemCreators"
        primary_key = CompositeKey("item", "creator", "creator_type", "order_index")


class ItemAttachments(ZoteroModel):
    item = ForeignKeyField(Items, column_name="itemID", primary_key=True, backref="+")
    parent_item = ForeignKeyField(
        Items,
        column_name="parentItemID",
        object_id_name="parent_item_id",
        null=True,
        backref="+",
    )
    link_mode = IntegerField(column_name="linkMode", null=True)
    content_type = TextField(column_name="contentType", null=True)
    path = TextField(null=True)

    class Meta:
        table_name = "itemAttachments"


class ItemAnnotations(ZoteroModel):
    item = ForeignKeyField(Items, column_name="itemID", primary_key=True, backref="+")
    parent_item = ForeignKeyField(Items, column_name="parentItemID", backref="+")
    type = IntegerField()
    text = TextField(null=True)
    comment = TextField(null=True)
    color = TextField(null=True)
    page_label = TextField(column_name="pageLabel", null=True)
    sort_index = TextField(column_name="sortIndex", null=True)
    position = TextField(null=True)

    class Meta:
        table_name = "itemAnnotations"


class Tags(ZoteroModel):
    id = AutoField(column_name="tagID")
    name = TextField(unique=True)

    class Meta:
        table_name = "tags"


class ItemTags(ZoteroModel):
    item = ForeignKeyField(Items, column_name="itemID", backref="+")
    tag = ForeignKeyField(Tags, column_name="tagID", backref="+")
    type = IntegerField(default=0)

    class Meta:
        table_name = "itemTags"
        primary_key = CompositeKey("item", "tag")


class Groups(ZoteroModel):
    id = IntegerField(column_name="groupID", primary_key=True)
    library_id = IntegerField(column_name="libraryID", unique=True)
    name = TextField(default="")

    class Meta:
        table_name = "groups"


ZOTERO_MODELS = (
    ItemTypes,
    Items,
    Fields,
    ItemTypeFields,
    BaseFieldMappings,
    ItemDataValues,
    ItemData,
    CreatorTypes,
    Creators,
    ItemCreators,
    ItemAttachments,
    ItemAnnotations,
    Tags,
    ItemTags,
    Groups,
)


class Storage:
    """Read-only view over a Zotero database implementing ``Library``."""

    def __init__(
        self,
        path: Path | str,
        *,
        data_dir: Path | None = None,
        base_attachment_dir: Path | None = None,
        read_only: bool = True,
    ) -> None:
        self.path = Path(path)
        self.data_dir = data_dir if data_dir is not None else self.path.parent
        self.base_attachment_dir = base_attachment_dir
        self._database = StorageDatabase(self.path, read_only=read_only)

    def initialize(self) -> None:
        """Check the database file exists and looks like a Zotero library."""

        if not self.path.exists():
            raise StorageError(f"Zotero database not found at {self.path}")

        with self._binding():
            missing = [
                model._meta.table_name
                for model in (Items, ItemAttachments, ItemAnnotations)
                if not model.table_exists()
            ]
        if missing:
            raise StorageError(
                f"{self.path} is not a Zotero database (missing: {', '.join(missing)})"
            )

    # ------------------------------------------------------------------
    # Library protocol
    # ------------------------------------------------------------------
    def get_item(self, key: str) -> BibliographicItem | Attachment | None:
        with self._binding():
            row = (
                Items.select(Items, ItemTypes)
                .join(ItemTypes)
                .where(Items.key == key)
                .first()
            )
            if row is None:
                return None
            return self._build_entry(row)

    def get_parent(self, attachment: Attachment) -> BibliographicItem | None:
        if attachment.parent_id is None:
            return None
        with self._binding():
            return self._regular_item(attachment.parent_id)

    def get_attachments(self, item: BibliographicItem) -> list[Attachment]:
        with self._binding():
            query = (
                ItemAttachments.select(ItemAttachments, Items)
                .join(Items, on=ItemAttachments.item)
                .where(ItemAttachments.parent_item == item.item_id)
                .order_by(Items.id)
            )
            groups = self._group_ids()
            return [self._build_attachment(row, row.item, groups) for row in query]

    def get_annotations(self, attachment: Attachment) -> list[Annotation]:
        with self._binding():
            query = (
                ItemAnnotations.select(ItemAnnotations, Items)
                .join(Items, on=ItemAnnotations.item)
                .where(ItemAnnotations.parent_item == attachment.item_id)
                .order_by(Items.id)
            )
            rows = list(query)
            tags = self._tags_for([row.item.id for row in rows])
            return [
                Annotation(
                    key=row.item.key,
                    kind=ANNOTATION_KINDS.get(row.type, "unknown"),
                    page_label=row.page_label or "",
                    position=row.position or "",
                    sort_index=row.sort_index or "",
                    text=row.text,
                    comment=row.comment,
                    color=row.color,
                    tags=tags.get(row.item.id, ()),
                )
                for row in rows
            ]

    def find_by_citekey(self, citekey: str) -> BibliographicItem | None:
        """Scan ``extra`` fields for a ``Citation Key:`` line matching ``citekey``."""

        wanted = citekey.strip()
        if not wanted:
            return None

        with self._binding():
            query = (
                ItemData.select(ItemData.item, ItemDataValues.value)
                .join(Fields, on=(ItemData.field == Fields.id))
                .switch(ItemData)
                .join(ItemDataValues, on=(ItemData.value == ItemDataValues.id))
                .where(
                    (Fields.field_name == "extra")
                    & fn.LOWER(ItemDataValues.value).contains("citation key")
                )
                .order_by(ItemData.item)
                .tuples()
            )
            for item_id, extra in query:
                if extract_citekey(extra) != wanted:
                    continue
                item = self._regular_item(item_id)
                if item is not None:
                    return item
        return None

    # ------------------------------------------------------------------
    # Listing helpers used by the CLI
    # ------------------------------------------------------------------
    def list_annotated_items(
        self, limit: int = 20
    ) -> list[tuple[BibliographicItem, int]]:
        """Return regular items with annotated PDF/EPUB attachments.

        Items are paired with their annotation count, most recent first.
        """

        if limit <= 0:
            return []

        with self._binding():
            count = fn.COUNT(ItemAnnotations.item)
            query = (
                ItemAttachments.select(ItemAttachments.parent_item, count)
                .join(
                    ItemAnnotations,
                    on=(ItemAnnotations.parent_item == ItemAttachments.item),
                )
                .where(
                    ItemAttachments.parent_item.is_null(False)
                    & ItemAttachments.content_type.in_(SUPPORTED_CONTENT_TYPES)
                )
                .group_by(ItemAttachments.parent_item)
                .order_by(ItemAttachments.parent_item.desc())
                .limit(int(limit))
                .tuples()
            )
            results: list[tuple[BibliographicItem, int]] = []
            for parent_id, annotation_count in query:
                item = self._regular_item(parent_id)
                if item is not None:
                    results.append((item, int(annotation_count)))
            return results

    def count_annotations(self) -> int:
        with self._binding():
            return ItemAnnotations.select().count()

    def count_items(self) -> int:
        with self._binding():
            return (
                Items.select()
                .join(ItemTypes)
                .where(ItemTypes.type_name.not_in(list(NON_REGULAR_TYPES)))
                .count()
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _regular_item(self, item_id: int) -> BibliographicItem | None:
        row = (
            Items.select(Items, ItemTypes)
            .join(ItemTypes)
            .where(Items.id == item_id)
            .first()
        )
        if row is None or row.item_type.type_name in NON_REGULAR_TYPES:
            return None
        return self._build_item(row)

    def _build_entry(self, row: Items) -> BibliographicItem | Attachment | None:
        type_name = row.item_type.type_name
        if type_name == ATTACHMENT_TYPE:
            attachment_row = ItemAttachments.get_or_none(
                ItemAttachments.item == row.id
            )
            if attachment_row is None:
                logger.debug("Attachment %s has no itemAttachments row", row.key)
                return None
            return self._build_attachment(attachment_row, row, self._group_ids())
        if type_name in NON_REGULAR_TYPES:
            return None
        return self._build_item(row)

    def _build_item(self, row: Items) -> BibliographicItem:
        item_type_id = row.item_type.id
        mappings = dict(
            BaseFieldMappings.select(
                BaseFieldMappings.field, BaseFieldMappings.base_field
            )
            .where(BaseFieldMappings.item_type == item_type_id)
            .tuples()
        )
        field_names = dict(Fields.select(Fields.id, Fields.field_name).tuples())

        fields: dict[str, str] = {}
        data = (
            ItemData.select(ItemData.field, ItemDataValues.value)
            .join(ItemDataValues, on=(ItemData.value == ItemDataValues.id))
            .where(ItemData.item == row.id)
            .tuples()
        )
        for field_id, value in data:
            text = "" if value is None else str(value)
            name = field_names.get(field_id)
            if name is not None:
                fields[name] = text
            base_id = mappings.get(field_id)
            if base_id is not None and base_id in field_names:
                fields[field_names[base_id]] = text

        defined_ids = [
            field_id
            for (field_id,) in ItemTypeFields.select(ItemTypeFields.field)
            .where(ItemTypeFields.item_type == item_type_id)
            .tuples()
        ]
        defined: frozenset[str] | None = None
        if defined_ids:
            names = {field_names[fid] for fid in defined_ids if fid in field_names}
            names.update(
                field_names[mappings[fid]]
                for fid in defined_ids
                if fid in mappings and mappings[fid] in field_names
            )
            defined = frozenset(names)

        return BibliographicItem(
            item_id=row.id,
            key=row.key,
            library_id=row.library_id,
            item_type=row.item_type.type_name,
            fields=fields,
            creators=self._creators_for(row.id),
            defined_fields=defined,
        )

    def _creators_for(self, item_id: int) -> tuple[Creator, ...]:
        query = (
            ItemCreators.select(ItemCreators, Creators, CreatorTypes)
            .join(Creators)
            .switch(ItemCreators)
            .join(CreatorTypes)
            .where(ItemCreators.item == item_id)
            .order_by(ItemCreators.order_index)
        )
        creators: list[Creator] = []
        for link in query:
            person = link.creator
            role = link.creator_type.creator_type
            if person.field_mode == SINGLE_FIELD_MODE:
                name = person.last_name or ""
                creators.append(Creator(creator_type=role, name=name))
            else:
                creators.append(
                    Creator(
                        creator_type=role,
                        last_name=person.last_name or "",
                        first_name=person.first_name or "",
                    )
                )
        return tuple(creators)

    def _build_attachment(
        self,
        attachment_row: ItemAttachments,
        item_row: Items,
        groups: dict[int, int],
    ) -> Attachment:
        return Attachment(
            item_id=item_row.id,
            key=item_row.key,
            library_id=item_row.library_id,
            content_type=attachment_row.content_type or "",
            path=self._resolve_path(item_row.key, attachment_row.path),
            parent_id=attachment_row.parent_item_id,
            group_id=groups.get(item_row.library_id),
        )

    def _resolve_path(self, key: str, raw_path: str | None) -> Path | None:
        if not raw_path:
            return None
        if raw_path.startswith(STORAGE_PREFIX):
            return self.data_dir / "storage" / key / raw_path[len(STORAGE_PREFIX) :]
        if raw_path.startswith(ATTACHMENTS_PREFIX):
            if self.base_attachment_dir is None:
                logger.debug("No base attachment directory for %s", raw_path)
                return None
            relative = raw_path[len(ATTACHMENTS_PREFIX) :]
            return self.base_attachment_dir / relative
        candidate = Path(raw_path)
        if candidate.is_absolute():
            return candidate
        logger.debug("Cannot resolve attachment path %r for %s", raw_path, key)
        return None

    def _tags_for(self, item_ids: list[int]) -> dict[int, tuple[str, ...]]:
        if not item_ids:
            return {}
        query = (
            ItemTags.select(ItemTags.item, Tags.name)
            .join(Tags, on=(ItemTags.tag == Tags.id))
            .where(ItemTags.item.in_(item_ids))
            .order_by(ItemTags.item, ItemTags.tag)
            .tuples()
        )
        tags: dict[int, list[str]] = {}
        for item_id, name in query:
            tags.setdefault(item_id, []).append(name)
        return {item_id: tuple(names) for item_id, names in tags.items()}

    def _group_ids(self) -> dict[int, int]:
        if not Groups.table_exists():
            return {}
        return dict(Groups.select(Groups.library_id, Groups.id).tuples())

    @contextmanager
    def _binding(self) -> Iterator[None]:
        try:
            with self._database.connection_context():
                with self._database.bind_ctx(ZOTERO_MODELS):
                    yield
        except DatabaseError as exc:
            raise StorageError(f"Failed to read Zotero database: {exc}") from exc


__all__ = [
    "ANNOTATION_KINDS",
    "DB_FILENAME",
    "Storage",
    "StorageError",
    "ZOTERO_MODELS",
]

"""Category use cases.

Categories form a strict two-level tree per type: root categories have
``parent_id == 0`` and subcategories point at an active root of the same type.
Names are unique (case-insensitive) among active siblings of one user.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.core.datetime_utils import as_utc
from finance_tracker.core.errors import (
    CategoryInUse,
    DuplicateName,
    InUse,
    MaxDepthExceeded,
    NotFound,
    ParentNotFound,
    SelfParentError,
    StorageError,
    TypeMismatch,
    ValidationError,
)
from finance_tracker.core.sanitize import normalize_tag, validate_name, validate_numeric_id
from finance_tracker.db.constraints import storage_errors
from finance_tracker.models import Category, Transaction
from finance_tracker.models.category import CATEGORY_TYPES, ROOT_PARENT_ID
from finance_tracker.schemas.category import (
    CategoryDTO,
    CreateCategoryCommand,
    GetCategoriesQuery,
    UpdateCategoryCommand,
)

logger = logging.getLogger(__name__)


def _invalid_parent() -> ParentNotFound:
    return ParentNotFound("Referenced parent category is invalid")


def _to_dto(row: Category) -> CategoryDTO:
    return CategoryDTO(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        category_type=row.category_type,
        parent_id=row.parent_id,
        tag=row.tag,
        active=row.active,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _validate_type(category_type: str) -> str:
    if category_type not in CATEGORY_TYPES:
        raise ValidationError("Category type must be either 'income' or 'expense'")
    return category_type


def _has_active_children(db: Session, category_id: int, user_id: str) -> bool:
    return (
        db.scalar(
            select(Category.id)
            .where(
                Category.user_id == user_id,
                Category.parent_id == category_id,
                Category.active == True,  # noqa: E712
            )
            .limit(1)
        )
        is not None
    )


class CategoryService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, command: CreateCategoryCommand, user_id: str) -> CategoryDTO:
        name = validate_name(command.name, label="category")
        category_type = _validate_type(command.category_type)
        parent_id = command.parent_id or ROOT_PARENT_ID
        if parent_id < 0:
            raise ValidationError("Parent ID must be zero or a positive integer")
        tag = normalize_tag(command.tag)

        if parent_id > 0:
            self.validate_parent_category(parent_id, user_id, category_type)
        self.validate_name_uniqueness(name, parent_id, user_id)

        with storage_errors(
            "create category", on_unique=DuplicateName, on_foreign_key=_invalid_parent
        ), self._session_factory() as db:
            row = Category(
                user_id=user_id,
                name=name,
                category_type=category_type,
                parent_id=parent_id,
                tag=tag,
                active=True,
            )
            db.add(row)
            db.commit()

        logger.info("Created %s category %s (parent %s) for user %s", category_type, row.id, parent_id, user_id)
        return _to_dto(row)

    def update(self, category_id: int, command: UpdateCategoryCommand, user_id: str) -> CategoryDTO:
        validate_numeric_id(category_id, "category_id")

        fields = command.model_fields_set
        new_name = validate_name(command.name, label="category") if command.name is not None else None
        new_type = _validate_type(command.category_type) if command.category_type is not None else None
        new_parent_id = command.parent_id if "parent_id" in fields and command.parent_id is not None else None

        with storage_errors("retrieve category"), self._session_factory() as db:
            existing = self._get_active(db, category_id, user_id)
            if existing is None:
                raise NotFound("Category not found or access denied")
            has_children = _has_active_children(db, category_id, user_id)

        if new_parent_id is not None and new_parent_id == category_id:
            raise SelfParentError()

        effective_type = new_type or existing.category_type
        effective_parent = new_parent_id if new_parent_id is not None else existing.parent_id
        parent_changing = effective_parent != existing.parent_id
        type_changing = effective_type != existing.category_type

        if has_children and effective_parent > 0:
            # Its children would end up three levels deep.
            raise MaxDepthExceeded()
        if has_children and type_changing:
            raise TypeMismatch("Cannot change the type of a category that has subcategories")

        if effective_parent > 0 and (parent_changing or type_changing):
            self.validate_parent_category(effective_parent, user_id, effective_type)

        name_changing = new_name is not None and new_name != existing.name
        if name_changing or parent_changing:
            self.validate_name_uniqueness(new_name or existing.name, effective_parent, user_id, category_id)

        changes: dict[str, object] = {}
        if new_name is not None:
            changes["name"] = new_name
        if new_type is not None:
            changes["category_type"] = new_type
        if new_parent_id is not None:
            changes["parent_id"] = new_parent_id
        if "tag" in fields:
            changes["tag"] = normalize_tag(command.tag)

        with storage_errors(
            "update category", on_unique=DuplicateName, on_foreign_key=_invalid_parent
        ), self._session_factory() as db:
            row = self._get_active(db, category_id, user_id)
            if row is None:
                raise NotFound("Category not found or access denied")
            for key, value in changes.items():
                setattr(row, key, value)
            db.commit()

        logger.info("Updated category %s (%s)", category_id, ", ".join(sorted(changes)) or "no changes")
        return _to_dto(row)

    def get_by_id(self, category_id: int, user_id: str) -> CategoryDTO | None:
        validate_numeric_id(category_id, "category_id")
        with storage_errors("retrieve category"), self._session_factory() as db:
            row = db.scalar(select(Category).where(Category.id == category_id, Category.user_id == user_id))
        return _to_dto(row) if row is not None else None

    def list(self, query: GetCategoriesQuery, user_id: str) -> list[CategoryDTO]:
        stmt = select(Category).where(Category.user_id == user_id)
        if not query.include_inactive:
            stmt = stmt.where(Category.active == True)  # noqa: E712
        if query.category_type is not None:
            stmt = stmt.where(Category.category_type == _validate_type(query.category_type))
        if query.parent_id is not None:
            stmt = stmt.where(Category.parent_id == query.parent_id)

        # Roots (parent 0) first, then each parent's children together.
        stmt = stmt.order_by(Category.parent_id.asc(), Category.name.asc(), Category.id.asc())

        with storage_errors("retrieve categories"), self._session_factory() as db:
            rows = db.scalars(stmt).all()

        items: list[CategoryDTO] = []
        for index, row in enumerate(rows):
            try:
                items.append(_to_dto(row))
            except PydanticValidationError as exc:
                raise StorageError(f"Failed to map category at index {index}: {exc.error_count()} invalid field(s)") from exc
        return items

    def delete(self, category_id: int, user_id: str) -> None:
        validate_numeric_id(category_id, "category_id")

        # Guard and soft delete share one store transaction.
        with storage_errors("delete category"), self._session_factory.begin() as db:
            row = db.scalar(
                select(Category)
                .where(
                    Category.id == category_id,
                    Category.user_id == user_id,
                    Category.active == True,  # noqa: E712
                )
                .with_for_update()
            )
            if row is None:
                raise NotFound("Category not found or access denied")

            count = db.scalar(
                select(func.count(Transaction.id)).where(
                    Transaction.category_id == category_id,
                    Transaction.user_id == user_id,
                    Transaction.active == True,  # noqa: E712
                )
            )
            if count:
                logger.info("Refused to delete category %s: %s active transaction(s)", category_id, count)
                raise CategoryInUse(int(count))

            if _has_active_children(db, category_id, user_id):
                raise InUse("Category has subcategories; delete them first")

            row.active = False

        logger.info("Deleted category %s", category_id)

    def validate_parent_category(self, parent_id: int, user_id: str, expected_type: str) -> None:
        with storage_errors("validate parent category"), self._session_factory() as db:
            parent = self._get_active(db, parent_id, user_id)

        if parent is None:
            raise ParentNotFound()
        # A parent that is itself a subcategory would make a third level.
        if parent.parent_id > 0:
            raise MaxDepthExceeded()
        if parent.category_type != expected_type:
            raise TypeMismatch()

    def validate_name_uniqueness(
        self, name: str, parent_id: int, user_id: str, exclude_id: int | None = None
    ) -> None:
        stmt = select(Category.id).where(
            Category.user_id == user_id,
            Category.active == True,  # noqa: E712
            Category.parent_id == parent_id,
            func.lower(Category.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)

        with storage_errors("check category name uniqueness"), self._session_factory() as db:
            clash = db.scalar(stmt.limit(1))

        if clash is not None:
            raise DuplicateName()

    @staticmethod
    def _get_active(db: Session, category_id: int, user_id: str) -> Category | None:
        return db.scalar(
            select(Category).where(
                Category.id == category_id,
                Category.user_id == user_id,
                Category.active == True,  # noqa: E712
            )
        )

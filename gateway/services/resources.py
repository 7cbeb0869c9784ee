### Description ###
# CRM Gateway - Multi-tenant External API
# - Resource Handler -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Resource Handler

One generic CRUD handler, parameterized per resource by a
ResourceDefinition (table, body schemas, relations). Every query is
scoped to the caller's tenant and every write forces tenant_id.

Registered resources:
- contacts, products, cards, appointments, tasks

Successful writes schedule a webhook event "<entity>.<action>" on the
request's background tasks, so delivery never delays the response.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Optional

from fastapi import BackgroundTasks
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, SQLAlchemyError, StatementError
from sqlalchemy.orm import Query, Session, sessionmaker

from gateway.errors import NotFoundError, UpstreamError, ValidationError
from gateway.models import Appointment, Card, Contact, Product, Task
from gateway.schemas.resources import (
    AppointmentCreate,
    AppointmentUpdate,
    CardCreate,
    CardUpdate,
    ContactCreate,
    ContactUpdate,
    ProductCreate,
    ProductUpdate,
    TaskCreate,
    TaskUpdate,
)
from gateway.services.query import Filter, TranslatedQuery
from gateway.utils import parse_timestamp

logger = logging.getLogger(__name__)

# Never writable by callers
PROTECTED_FIELDS = frozenset({"id", "tenant_id", "created_at", "updated_at"})

EVENT_ACTIONS = ("created", "updated", "deleted")


@dataclass(frozen=True)
class Relation:
    """
    An expandable relation for ?include=.

    Rows of `model` whose `remote_key` equals this row's `local_key` are
    attached under `name`. Belongs-to relations (many=False) also define
    which foreign keys a write must point at same-tenant rows.
    """

    name: str
    model: type
    local_key: str
    remote_key: str
    many: bool


@dataclass(frozen=True)
class ResourceDefinition:
    name: str  # URL segment, e.g. "contacts"
    entity: str  # event prefix, e.g. "contact"
    model: type
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    relations: tuple[Relation, ...] = ()

    def event(self, action: str) -> str:
        return f"{self.entity}.{action}"


@dataclass
class Page:
    """One page of a list call"""

    rows: list[dict]
    total: int
    limit: int
    next_cursor: Optional[str] = None


@dataclass(frozen=True)
class TenantScope:
    """The part of an authenticated caller a handler needs"""

    tenant_id: str


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _coerce_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


class ResourceHandler:
    """CRUD for one resource, always within a single tenant"""

    def __init__(self, definition: ResourceDefinition, session_factory: sessionmaker, dispatcher=None):
        self.definition = definition
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self._relations = {relation.name: relation for relation in definition.relations}

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def model(self):
        return self.definition.model

    # ----------------------------------------
    # Operations
    # ----------------------------------------

    def list(self, scope: TenantScope, query: TranslatedQuery) -> Page:
        """Filtered, newest-first page of the tenant's rows"""
        self._check_includes(query.includes)
        model = self.model
        limit = query.pagination.limit

        with self.session_factory() as session, self._storage_errors():
            q = self._scoped(session, scope)
            dialect = session.get_bind().dialect.name
            for item in query.filters:
                q = q.filter(self._filter_clause(item, dialect))

            total = q.count()

            if query.pagination.cursor:
                try:
                    cursor = parse_timestamp(query.pagination.cursor)
                except ValueError:
                    raise ValidationError("Invalid cursor", details=[{"field": "cursor"}])
                q = q.filter(model.created_at < cursor)

            records = q.order_by(model.created_at.desc(), model.id.desc()).limit(limit).all()
            rows = [self._serialize(record) for record in records]
            self._expand(session, scope, rows, query.includes)

        next_cursor = None
        if records and len(records) == limit:
            next_cursor = records[-1].created_at.isoformat()

        return Page(rows=rows, total=total, limit=limit, next_cursor=next_cursor)

    def get(self, scope: TenantScope, item_id: str, includes: tuple[str, ...] = ()) -> dict:
        self._check_includes(includes)
        with self.session_factory() as session, self._storage_errors():
            record = self._find(session, scope, item_id)
            row = self._serialize(record)
            self._expand(session, scope, [row], includes)
        return row

    def create(self, scope: TenantScope, body: Any, tasks: Optional[BackgroundTasks] = None) -> dict:
        values = self._validate(self.definition.create_schema, body)

        with self.session_factory() as session, self._storage_errors():
            self._check_references(session, scope, values)
            record = self.model(**values)
            record.tenant_id = scope.tenant_id
            session.add(record)
            session.commit()
            session.refresh(record)
            row = self._serialize(record)

        logger.debug("Created %s %s for tenant %s", self.definition.entity, row["id"], scope.tenant_id)
        self._emit(tasks, scope, "created", row)
        return row

    def update(self, scope: TenantScope, item_id: str, body: Any, tasks: Optional[BackgroundTasks] = None) -> dict:
        """Partial update - only fields present in the body change"""
        values = self._validate(self.definition.update_schema, body, partial=True)

        with self.session_factory() as session, self._storage_errors():
            record = self._find(session, scope, item_id)
            self._check_references(session, scope, values)
            for key, value in values.items():
                setattr(record, key, value)
            session.commit()
            session.refresh(record)
            row = self._serialize(record)

        self._emit(tasks, scope, "updated", row)
        return row

    def delete(self, scope: TenantScope, item_id: str, tasks: Optional[BackgroundTasks] = None) -> None:
        with self.session_factory() as session, self._storage_errors():
            deleted = self._scoped(session, scope).filter(self.model.id == item_id).delete(synchronize_session=False)
            if not deleted:
                raise self._not_found()
            session.commit()

        self._emit(tasks, scope, "deleted", {"id": item_id})

    # ----------------------------------------
    # Helpers
    # ----------------------------------------

    def _scoped(self, session: Session, scope: TenantScope) -> Query:
        return session.query(self.model).filter(self.model.tenant_id == scope.tenant_id)

    def _find(self, session: Session, scope: TenantScope, item_id: str):
        record = self._scoped(session, scope).filter(self.model.id == item_id).first()
        if record is None:
            raise self._not_found()
        return record

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.definition.entity.capitalize()} not found")

    @staticmethod
    def _serialize(record) -> dict:
        return jsonable_encoder(record.to_dict())

    def _validate(self, schema: type[BaseModel], body: Any, partial: bool = False) -> dict:
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")

        cleaned = {key: value for key, value in body.items() if key not in PROTECTED_FIELDS}
        try:
            parsed = schema.model_validate(cleaned)
        except PydanticValidationError as e:
            details = [
                {
                    "field": ".".join(str(part) for part in error["loc"]) or None,
                    "message": error["msg"],
                    "code": error["type"],
                }
                for error in e.errors()
            ]
            raise ValidationError("Invalid request body", details=details)

        return parsed.model_dump(exclude_unset=partial)

    def _column(self, name: str):
        column = self.model.__table__.columns.get(name)
        if column is None:
            raise ValidationError(f"Unknown filter column '{name}'", details=[{"field": name}])
        return column

    def _coerce(self, column, raw: str):
        """Convert a query-string value to the column's Python type"""
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return raw

        try:
            if python_type is bool:
                return _coerce_bool(raw)
            if python_type is datetime:
                return parse_timestamp(raw)
            if python_type in (int, float):
                return python_type(raw)
        except ValueError:
            raise ValidationError(f"Invalid value for '{column.name}'", details=[{"field": column.name}])

        if python_type in (dict, list):
            raise ValidationError(f"Column '{column.name}' cannot be filtered", details=[{"field": column.name}])
        return raw

    def _filter_clause(self, item: Filter, dialect: str = ""):
        column = self._column(item.column)

        if item.json_key is not None:
            clause = column[item.json_key].as_string() == item.value
            # SQLite extracts JSON booleans as 1/0; json_type still reports 'true'/'false'
            if dialect == "sqlite" and item.value in ("true", "false"):
                path = '$."{}"'.format(item.json_key.replace('"', '\\"'))
                clause = or_(clause, func.json_type(column, path) == item.value)
            return clause

        if item.operator == "like":
            try:
                is_text = column.type.python_type is str
            except NotImplementedError:
                is_text = False
            if not is_text:
                raise ValidationError(
                    f"Column '{column.name}' does not support _like", details=[{"field": column.name}]
                )
            return column.ilike(f"%{_escape_like(item.value)}%", escape="\\")

        value = self._coerce(column, item.value)
        if item.operator == "gte":
            return column >= value
        if item.operator == "lte":
            return column <= value
        return column == value

    def _check_includes(self, includes: tuple[str, ...]) -> None:
        unknown = [name for name in includes if name not in self._relations]
        if unknown:
            raise ValidationError(
                f"Unknown include '{unknown[0]}' for {self.name}",
                details=[{"field": "include", "message": f"Allowed: {', '.join(self._relations) or 'none'}"}],
            )

    def _expand(self, session: Session, scope: TenantScope, rows: list[dict], includes: tuple[str, ...]) -> None:
        """Attach related rows in place, one tenant-scoped query per relation"""
        for name in includes:
            relation = self._relations[name]
            target = relation.model
            keys = {row.get(relation.local_key) for row in rows} - {None}

            grouped: dict[Any, list[dict]] = defaultdict(list)
            if keys:
                related = (
                    session.query(target)
                    .filter(
                        target.tenant_id == scope.tenant_id,
                        getattr(target, relation.remote_key).in_(keys),
                    )
                    .order_by(target.created_at.desc())
                    .all()
                )
                for record in related:
                    grouped[getattr(record, relation.remote_key)].append(self._serialize(record))

            for row in rows:
                matches = grouped.get(row.get(relation.local_key), [])
                if relation.many:
                    row[name] = matches
                else:
                    row[name] = matches[0] if matches else None

    def _check_references(self, session: Session, scope: TenantScope, values: dict) -> None:
        """Foreign keys in a write must point at rows of the same tenant"""
        for relation in self.definition.relations:
            if relation.many or relation.local_key not in values:
                continue
            ref_id = values[relation.local_key]
            if ref_id is None:
                continue

            target = relation.model
            exists = (
                session.query(target.id)
                .filter(target.tenant_id == scope.tenant_id, target.id == ref_id)
                .first()
            )
            if exists is None:
                raise ValidationError(
                    f"{relation.local_key} does not reference an existing {relation.name}",
                    details=[{"field": relation.local_key}],
                )

    @contextmanager
    def _storage_errors(self) -> Iterator[None]:
        """Map storage failures: caller-caused -> 400, anything else -> 500"""
        try:
            yield
        except (IntegrityError, DataError) as e:
            logger.info("Storage rejected %s write: %s", self.name, e.orig)
            raise ValidationError("Request rejected by storage constraints")
        except DBAPIError as e:
            logger.exception("Storage failure on %s", self.name)
            raise UpstreamError("Storage unavailable") from e
        except StatementError as e:
            logger.info("Storage rejected %s statement: %s", self.name, e.orig)
            raise ValidationError("Invalid value for the requested operation")
        except SQLAlchemyError as e:
            logger.exception("Storage failure on %s", self.name)
            raise UpstreamError("Storage unavailable") from e

    def _emit(self, tasks: Optional[BackgroundTasks], scope: TenantScope, action: str, payload: dict) -> None:
        if tasks is None or self.dispatcher is None:
            return
        tasks.add_task(self.dispatcher.dispatch, scope.tenant_id, self.definition.event(action), payload)


# ========================================
# Registry
# ========================================

RESOURCE_DEFINITIONS = (
    ResourceDefinition(
        name="contacts",
        entity="contact",
        model=Contact,
        create_schema=ContactCreate,
        update_schema=ContactUpdate,
        relations=(
            Relation("cards", Card, local_key="id", remote_key="contact_id", many=True),
            Relation("appointments", Appointment, local_key="id", remote_key="contact_id", many=True),
            Relation("tasks", Task, local_key="id", remote_key="contact_id", many=True),
        ),
    ),
    ResourceDefinition(
        name="products",
        entity="product",
        model=Product,
        create_schema=ProductCreate,
        update_schema=ProductUpdate,
    ),
    ResourceDefinition(
        name="cards",
        entity="card",
        model=Card,
        create_schema=CardCreate,
        update_schema=CardUpdate,
        relations=(
            Relation("contact", Contact, local_key="contact_id", remote_key="id", many=False),
            Relation("tasks", Task, local_key="id", remote_key="card_id", many=True),
            Relation("appointments", Appointment, local_key="id", remote_key="card_id", many=True),
        ),
    ),
    ResourceDefinition(
        name="appointments",
        entity="appointment",
        model=Appointment,
        create_schema=AppointmentCreate,
        update_schema=AppointmentUpdate,
        relations=(
            Relation("contact", Contact, local_key="contact_id", remote_key="id", many=False),
            Relation("card", Card, local_key="card_id", remote_key="id", many=False),
        ),
    ),
    ResourceDefinition(
        name="tasks",
        entity="task",
        model=Task,
        create_schema=TaskCreate,
        update_schema=TaskUpdate,
        relations=(
            Relation("contact", Contact, local_key="contact_id", remote_key="id", many=False),
            Relation("card", Card, local_key="card_id", remote_key="id", many=False),
        ),
    ),
)


class ResourceRegistry:
    """Resource name -> handler"""

    def __init__(self):
        self._handlers: dict[str, ResourceHandler] = {}

    def register(self, handler: ResourceHandler) -> None:
        self._handlers[handler.name] = handler

    def get(self, name: str) -> ResourceHandler:
        handler = self._handlers.get(name)
        if handler is None:
            raise NotFoundError("Resource not found")
        return handler

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    def names(self) -> list[str]:
        return list(self._handlers)

    def event_types(self) -> list[str]:
        """Every event a webhook may subscribe to"""
        return [
            handler.definition.event(action)
            for handler in self._handlers.values()
            for action in EVENT_ACTIONS
        ]


def build_registry(session_factory: sessionmaker, dispatcher=None) -> ResourceRegistry:
    """Registry with a handler for every CRM resource"""
    registry = ResourceRegistry()
    for definition in RESOURCE_DEFINITIONS:
        registry.register(ResourceHandler(definition, session_factory, dispatcher))
    return registry

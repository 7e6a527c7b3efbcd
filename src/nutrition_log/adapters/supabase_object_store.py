"""Supabase implementation of the object store."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_log.domain.catalog import CatalogEntry
from nutrition_log.domain.logs import Detached, Linked, LogEntry, Standalone
from nutrition_log.domain.nutrition import MealType, NutritionSnapshot
from nutrition_log.domain.query import Contains, Eq, Query, Range
from nutrition_log.errors import StoreError
from nutrition_log.services.store import Entity, EntityT, ObjectStore

_TABLES: dict[type, str] = {
    CatalogEntry: "catalog_entries",
    LogEntry: "log_entries",
}


@dataclass
class _PendingChange:
    action: str
    entity: Entity


@dataclass
class SupabaseObjectStore(ObjectStore):
    """Buffers changes locally and writes them to Supabase on commit."""

    client: Client
    _pending: list[_PendingChange] = field(default_factory=list)

    def insert(self, entity: Entity) -> None:
        """Stage an insert."""
        self._pending.append(_PendingChange("insert", entity))

    def update(self, entity: Entity) -> None:
        """Stage an update."""
        self._pending.append(_PendingChange("update", entity))

    def delete(self, entity: Entity) -> None:
        """Stage a delete."""
        self._pending.append(_PendingChange("delete", entity))

    def get(self, kind: type[EntityT], entity_id: UUID) -> EntityT | None:
        """Return an entity by id, including staged changes."""
        staged = self._staged(kind)
        if entity_id in staged:
            return staged[entity_id]
        response = (
            self.client.table(_TABLES[kind])
            .select("*")
            .eq("id", str(entity_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse(kind, response.data[0])

    def fetch(self, kind: type[EntityT], query: Query) -> list[EntityT]:
        """Run a query against committed rows, then apply staged edits."""
        request = self.client.table(_TABLES[kind]).select("*")
        for item in query.filters:
            match item:
                case Eq(field=name, value=value):
                    request = request.eq(name, _to_column_value(value))
                case Contains(fields=names, text=text):
                    pattern = _quote_pattern(f"%{text}%")
                    request = request.or_(
                        ",".join(f"{name}.ilike.{pattern}" for name in names)
                    )
                case Range(field=name, start=start, end=end):
                    if start is not None:
                        request = request.gte(name, _to_column_value(start))
                    if end is not None:
                        request = request.lt(name, _to_column_value(end))
        for key in query.sort:
            request = request.order(key.field, desc=key.descending, nullsfirst=False)
        if query.limit is not None:
            request = request.range(query.offset, query.offset + query.limit - 1)
        elif query.offset:
            request = request.offset(query.offset)
        response = request.execute()
        rows = [_parse(kind, row) for row in response.data or []]
        staged = self._staged(kind)
        merged: list[EntityT] = []
        for row in rows:
            current = staged.get(row.id, row)
            if current is not None:
                merged.append(current)
        return merged

    def commit(self) -> None:
        """Write staged changes in order."""
        pending, self._pending = self._pending, []
        for change in pending:
            table = self.client.table(_TABLES[type(change.entity)])
            entity_id = str(change.entity.id)
            if change.action == "insert":
                response = table.insert(_serialize(change.entity)).execute()
            elif change.action == "update":
                response = (
                    table.update(_serialize(change.entity)).eq("id", entity_id).execute()
                )
            else:
                table.delete().eq("id", entity_id).execute()
                continue
            if not response.data:
                raise StoreError(
                    f"Failed to {change.action} {type(change.entity).__name__} "
                    f"{entity_id}"
                )

    def rollback(self) -> None:
        """Drop staged changes."""
        self._pending.clear()

    def _staged(self, kind: type) -> dict[UUID, Entity | None]:
        staged: dict[UUID, Entity | None] = {}
        for change in self._pending:
            if not isinstance(change.entity, kind):
                continue
            if change.action == "delete":
                staged[change.entity.id] = None
            else:
                staged[change.entity.id] = change.entity
        return staged


def _to_column_value(value: object) -> object:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, MealType):
        return value.value
    return value


def _quote_pattern(pattern: str) -> str:
    escaped = pattern.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _serialize(entity: Entity) -> dict[str, object]:
    if isinstance(entity, CatalogEntry):
        return {
            "id": str(entity.id),
            "brand_name": entity.brand_name,
            "product_name": entity.product_name,
            "calories": entity.calories,
            "net_carbs": entity.net_carbs,
            "dietary_fiber": entity.dietary_fiber,
            "fat": entity.fat,
            "protein": entity.protein,
            "portion_size": entity.portion_size,
            "portion_unit": entity.portion_unit,
            "dedup_key": entity.dedup_key,
            "usage_count": entity.usage_count,
            "last_used_at": entity.last_used_at.isoformat()
            if entity.last_used_at
            else None,
            "last_number_of_servings": entity.last_number_of_servings,
        }
    match entity.source:
        case Linked():
            source_kind = "linked"
        case Detached():
            source_kind = "detached"
        case Standalone():
            source_kind = "standalone"
    return {
        "id": str(entity.id),
        "timestamp": entity.timestamp.isoformat(),
        "meal_type": entity.meal_type.value,
        "number_of_servings": entity.number_of_servings,
        "source_kind": source_kind,
        "catalog_id": str(entity.catalog_id) if entity.catalog_id else None,
        "nutrition_snapshot": entity.source.snapshot.to_dict(),
        "is_master_deleted": entity.is_master_deleted,
    }


def _parse(kind: type[EntityT], row: dict[str, object]) -> EntityT:
    if kind is CatalogEntry:
        return _parse_catalog(row)
    return _parse_log(row)


def _parse_catalog(row: dict[str, object]) -> CatalogEntry:
    last_used_raw = row.get("last_used_at")
    last_used_at = (
        datetime.fromisoformat(last_used_raw)
        if isinstance(last_used_raw, str) and last_used_raw
        else None
    )
    return CatalogEntry(
        id=UUID(str(row["id"])),
        brand_name=str(row.get("brand_name", "")),
        product_name=str(row.get("product_name", "")),
        calories=float(row.get("calories", 0.0)),
        net_carbs=float(row.get("net_carbs", 0.0)),
        dietary_fiber=float(row.get("dietary_fiber", 0.0)),
        fat=float(row.get("fat", 0.0)),
        protein=float(row.get("protein", 0.0)),
        portion_size=float(row.get("portion_size", 1.0)),
        portion_unit=str(row.get("portion_unit", "")),
        dedup_key=str(row.get("dedup_key", "")),
        usage_count=int(row.get("usage_count", 0)),
        last_used_at=last_used_at,
        last_number_of_servings=float(row.get("last_number_of_servings", 1.0)),
    )


def _parse_log(row: dict[str, object]) -> LogEntry:
    snapshot = NutritionSnapshot.from_dict(row.get("nutrition_snapshot") or {})
    source_kind = row.get("source_kind")
    catalog_id = row.get("catalog_id")
    if source_kind == "linked" and catalog_id:
        source = Linked(catalog_id=UUID(str(catalog_id)), snapshot=snapshot)
    elif source_kind == "detached" or row.get("is_master_deleted"):
        source = Detached(snapshot=snapshot)
    else:
        source = Standalone(snapshot=snapshot)
    return LogEntry(
        id=UUID(str(row["id"])),
        timestamp=datetime.fromisoformat(str(row["timestamp"])),
        meal_type=MealType(str(row["meal_type"])),
        number_of_servings=float(row.get("number_of_servings", 1.0)),
        source=source,
    )

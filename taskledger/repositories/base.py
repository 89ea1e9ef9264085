"""Generic in-memory entity collection kept durable through the gateway."""

from typing import Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from ..exceptions import PersistenceError
from ..storage.gateway import PersistenceGateway
from ..utils.logging import LoggerMixin

EntityT = TypeVar("EntityT", bound=BaseModel)


class EntityStore(LoggerMixin, Generic[EntityT]):
    """In-memory ``id -> entity`` map hydrated from, and flushed to, the gateway.

    Subclasses set :attr:`entity_name` (the storage key suffix) and
    :attr:`model` (the pydantic record class). The collection is loaded once
    at construction; a record that fails validation is logged and skipped
    instead of aborting the load.

    Every mutation writes the *whole* collection back, never a delta, so the
    cost of a save grows with the collection size. When the gateway reports
    a failed write the in-memory change stays applied; with ``strict=True``
    (the default) a :class:`PersistenceError` is raised so the caller knows
    the change is not durable, otherwise the failure is only logged.
    """

    entity_name: str = ""
    model: Type[EntityT]

    def __init__(self, gateway: PersistenceGateway, strict: bool = True):
        self.gateway = gateway
        self.strict = strict
        self._items: Dict[str, EntityT] = {}
        self._load()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items

    def find_by_id(self, entity_id: str) -> Optional[EntityT]:
        return self._items.get(entity_id)

    def find_all(self) -> List[EntityT]:
        """All entities, in insertion order."""
        return list(self._items.values())

    def count(self) -> int:
        return len(self._items)

    def snapshot(self) -> List[dict]:
        """Serialize the full collection as stored on disk (camelCase keys)."""
        return [entity.model_dump(mode="json", by_alias=True) for entity in self._items.values()]

    # ---- mutation helpers for subclasses ----

    def _insert(self, entity: EntityT) -> EntityT:
        self._items[entity.id] = entity
        self._persist()
        return entity

    def _discard(self, entity_id: str) -> bool:
        if entity_id not in self._items:
            return False
        del self._items[entity_id]
        self._persist()
        return True

    def _persist(self) -> bool:
        saved = self.gateway.save(self.entity_name, self.snapshot())
        if not saved:
            if self.strict:
                raise PersistenceError(self.entity_name)
            self.log_error(f"Changes to {self.entity_name} are kept in memory only")
        return saved

    def _load(self) -> None:
        records = self.gateway.load(self.entity_name, [])
        if not isinstance(records, list):
            self.log_warning(f"Stored {self.entity_name} is not a list, starting empty")
            records = []

        skipped = 0
        for record in records:
            try:
                entity = self.model.model_validate(record)
            except (ValueError, TypeError) as e:
                skipped += 1
                record_id = record.get("id") if isinstance(record, dict) else None
                self.log_warning(f"Skipping unreadable {self.entity_name} record {record_id}: {str(e)}")
                continue
            self._items[entity.id] = entity

        self.log_info(f"Loaded {len(self._items)} {self.entity_name} ({skipped} skipped)")

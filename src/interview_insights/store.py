"""Record store with change notification for interviews and company summaries."""
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generic, Literal, TypeVar

from pydantic import BaseModel

from .cache import FileCache
from .models import utc_now

R = TypeVar('R', bound=BaseModel)

EventType = Literal["INSERT", "UPDATE", "DELETE"]


@dataclass
class ChangeEvent:
    """A single write to the store."""
    event_type: EventType
    new: BaseModel | None = None
    old: BaseModel | None = None


Listener = Callable[[ChangeEvent], None]


class RecordStore(FileCache, Generic[R]):
    """CRUD over pydantic records keyed by their `id`, one file per record.

    Listeners are called after every write. They are expected to recompute
    whatever view depends on the store from scratch.
    """

    def __init__(self, directory: Path, model: type[R]):
        super().__init__(directory, loader=model.model_validate_json, serializer=self._dump)
        self.model = model
        self._listeners: list[Listener] = []

    @staticmethod
    def _dump(record: R) -> str:
        return record.model_dump_json(indent=2)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def records(self) -> list[R]:
        return [record for _, record in self.items()]

    def insert(self, record: R) -> R:
        if record.id in self:
            raise ValueError(f"Record {record.id} already exists")
        self.put(record.id, record)
        self._notify(ChangeEvent(event_type="INSERT", new=record))
        return record

    def update(self, record_id: str, **changes) -> R:
        old = self.get(record_id)
        if old is None:
            raise KeyError(record_id)
        if "updated_at" in self.model.model_fields:
            changes.setdefault("updated_at", utc_now())
        new = self.model.model_validate({**old.model_dump(), **changes})
        self.put(record_id, new)
        self._notify(ChangeEvent(event_type="UPDATE", new=new, old=old))
        return new

    def delete(self, record_id: str) -> None:
        old = self.get(record_id)
        if old is None:
            raise KeyError(record_id)
        self.discard(record_id)
        self._notify(ChangeEvent(event_type="DELETE", old=old))

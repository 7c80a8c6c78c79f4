"""
Non-persistent storage used when STORE_BACKEND=memory.

One MemoryDB is built at startup and handed to every request through the
store factories; nothing in here is module-global. Rows are plain
(transient) ORM objects so both backends return the same types.
"""
from __future__ import annotations
from typing import Dict, Iterator, Type

from .orm import Base, User, Event, Rider, Purchase


class MemoryDB:
    def __init__(self) -> None:
        self.tables: Dict[str, Dict[int, Base]] = {
            User.__tablename__: {},
            Event.__tablename__: {},
            Rider.__tablename__: {},
            Purchase.__tablename__: {},
        }
        self._next_id: Dict[str, int] = {k: 1 for k in self.tables}

    def insert(self, row: Base) -> Base:
        table = row.__tablename__
        row.id = self._next_id[table]
        self._next_id[table] += 1
        self.tables[table][row.id] = row
        return row

    def get(self, model: Type[Base], id_: int):
        return self.tables[model.__tablename__].get(id_)

    def delete(self, model: Type[Base], id_: int) -> bool:
        return self.tables[model.__tablename__].pop(id_, None) is not None

    def rows(self, model: Type[Base]) -> Iterator:
        # dicts keep insertion order, ids are handed out ascending
        return iter(list(self.tables[model.__tablename__].values()))

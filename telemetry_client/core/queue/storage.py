"""Almacenamiento persistente de la cola (SQLite vía SQLAlchemy).

Una única tabla con blobs ordenados por id autoincremental. AUTOINCREMENT
garantiza que los ids nunca se reutilizan, así que "más antiguo" es
siempre el id mínimo aunque la tabla se vacíe y se vuelva a llenar.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from common.db import get_engine

from ..domain.errors import StorageError
from ..domain.interfaces import IQueueStorage
from ..domain.reading import Payload, QueueEntry

logger = logging.getLogger(__name__)

TABLE_NAME = "pack_table"


class SQLiteQueueStorage(IQueueStorage):
    """Tabla SQLite `pack_table(id, packet)`.

    Uso:
        storage = SQLiteQueueStorage("./data/client_data.db")
        storage.append(b"...")
        entry = storage.read_oldest()
    """

    def __init__(self, db_file: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None and db_file is None:
            raise StorageError("SQLiteQueueStorage needs db_file or engine")

        try:
            self._engine = engine or get_engine(db_file)
            self._create_table()
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"open queue storage failed: {e}") from e

        self._closed = False
        logger.info("[QUEUE] Storage ready: %s pending=%d", self._engine.url, self.count())

    def _create_table(self) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                text(
                    f"""
                    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        packet BLOB NOT NULL
                    )
                    """
                )
            )

    def append(self, data: bytes) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text(f"INSERT INTO {TABLE_NAME}(packet) VALUES (:packet)"),
                    {"packet": data},
                )
        except SQLAlchemyError as e:
            raise StorageError(f"append failed: {e}") from e

    def read_oldest(self) -> Optional[QueueEntry]:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text(f"SELECT id, packet FROM {TABLE_NAME} ORDER BY id ASC LIMIT 1")
                ).fetchone()
        except SQLAlchemyError as e:
            raise StorageError(f"read oldest failed: {e}") from e

        if not row:
            return None
        return QueueEntry(entry_id=int(row[0]), payload=Payload(data=bytes(row[1])))

    def delete(self, entry_id: int) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text(f"DELETE FROM {TABLE_NAME} WHERE id = :id"),
                    {"id": entry_id},
                )
        except SQLAlchemyError as e:
            raise StorageError(f"delete id={entry_id} failed: {e}") from e

    def count(self) -> int:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(text(f"SELECT COUNT(*) FROM {TABLE_NAME}")).fetchone()
        except SQLAlchemyError as e:
            raise StorageError(f"count failed: {e}") from e
        return int(row[0]) if row else 0

    def close(self) -> None:
        if self._closed:
            return
        self._engine.dispose()
        self._closed = True
        logger.info("[QUEUE] Storage closed")

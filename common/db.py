from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine


logger = logging.getLogger(__name__)


def build_sqlite_url(db_file: str) -> str:
    # Ruta absoluta: el daemon puede cambiar de cwd al demonizarse.
    return f"sqlite:///{Path(db_file).expanduser().resolve()}"


def _set_sqlite_pragmas(dbapi_conn, _record) -> None:
    # synchronous=FULL: un INSERT confirmado sobrevive a un corte de luz.
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=FULL")
    finally:
        cursor.close()


def get_engine(db_file: str) -> Engine:
    """Crea el engine SQLite de la cola persistente.

    Crea el directorio padre si no existe (primer arranque).
    """
    path = Path(db_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    url = build_sqlite_url(str(path))
    logger.info("[DB] Crear engine SQLite file=%s", path)

    engine = create_engine(url, future=True)
    event.listen(engine, "connect", _set_sqlite_pragmas)

    # Test de conexión: falla pronto si el fichero no es accesible
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("[DB] Test de conexión OK")

    return engine

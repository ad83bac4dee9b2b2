# ==============================================================================
# CONEXIÓN A LA BASE DE DATOS
# ==============================================================================
# Engine + fábrica de sesiones de SQLAlchemy.
# Cada operación de repositorio abre su propia sesión corta: una llamada al
# almacén = una transacción. No hay transacciones que abarquen varios pasos.
# ==============================================================================

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str) -> Engine:
    """
    Crea el engine para la URL indicada.

    Las bases SQLite en memoria comparten una única conexión para que todas
    las sesiones vean las mismas tablas (usado por los tests).
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True, pool_size=10, max_overflow=20)


class Database:
    """Agrupa engine y fábrica de sesiones de una URL de conexión."""

    def __init__(self, database_url: str):
        self.url = database_url
        self.engine = build_engine(database_url)
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        """Crea las tablas que falten."""
        # Importar los modelos para registrarlos en Base.metadata
        import punto_venta.models.tables  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Sesión transaccional: commit al salir, rollback si hay error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()

# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a tablas SQL
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Type

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from punto_venta.db import Base, Database

# Carácter de escape para los patrones LIKE de búsqueda
LIKE_ESCAPE = "\\"


class RepositoryError(Exception):
    """Error de comunicación con el almacén (envuelve SQLAlchemyError y OverflowError)."""
    pass


class BaseRepository:
    """
    Clase base para todos los repositorios.

    Cada método público abre su propia sesión: una llamada al almacén es una
    transacción independiente. Los servicios que encadenan varias llamadas
    NO obtienen atomicidad entre ellas.

    Las filas se devuelven como diccionarios planos (nunca objetos ORM).
    """

    # Tabla ORM que maneja el repositorio (definida por cada subclase)
    model: Type[Base] = None

    def __init__(self, db: Database):
        """
        Inicializa el repositorio.

        Args:
            db: Conexión a la base de datos
        """
        self.db = db

    # =========================================================================
    # UTILIDADES INTERNAS
    # =========================================================================

    def _run(self, operation: Callable[[Session], Any]) -> Any:
        """
        Ejecuta una operación dentro de una sesión transaccional.

        Raises:
            RepositoryError: Si la base de datos rechaza la operación
        """
        try:
            with self.db.session_scope() as session:
                return operation(session)
        except (SQLAlchemyError, OverflowError) as e:
            # OverflowError: el driver de SQLite rechaza enteros de más de 64 bits
            raise RepositoryError(f"{self.model.__tablename__}: {e}") from e

    @staticmethod
    def _like_pattern(term: str) -> str:
        """Patrón LIKE "contiene" en minúsculas, con % _ y \\ escapados."""
        text = (term or '').strip().lower()
        for char in (LIKE_ESCAPE, '%', '_'):
            text = text.replace(char, LIKE_ESCAPE + char)
        return f"%{text}%"

    @staticmethod
    def _to_dict(row: Any) -> Optional[Dict[str, Any]]:
        """Convierte una fila ORM en diccionario."""
        if row is None:
            return None
        return {c.key: getattr(row, c.key) for c in inspect(row).mapper.column_attrs}

    def _columns(self) -> List[str]:
        return [c.key for c in inspect(self.model).column_attrs]

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Descarta claves que no son columnas de la tabla."""
        columns = set(self._columns())
        return {k: v for k, v in data.items() if k in columns}

    # =========================================================================
    # OPERACIONES CRUD
    # =========================================================================

    def get_all(self, order_by: Any = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Obtiene todos los registros.

        Args:
            order_by: Columna(s) de ordenamiento (opcional)
            limit: Máximo de registros (opcional)
        """
        def op(session: Session):
            stmt = select(self.model)
            if order_by is not None:
                stmt = stmt.order_by(order_by)
            if limit:
                stmt = stmt.limit(limit)
            return [self._to_dict(r) for r in session.scalars(stmt).all()]
        return self._run(op)

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """Obtiene un registro por su ID (None si no existe)."""
        return self._run(lambda session: self._to_dict(session.get(self.model, record_id)))

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """Primer registro cuyo campo coincide con el valor."""
        def op(session: Session):
            stmt = select(self.model).where(getattr(self.model, field) == value).limit(1)
            return self._to_dict(session.scalars(stmt).first())
        return self._run(op)

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        """Todos los registros cuyo campo coincide con el valor."""
        def op(session: Session):
            stmt = select(self.model).where(getattr(self.model, field) == value)
            return [self._to_dict(r) for r in session.scalars(stmt).all()]
        return self._run(op)

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inserta un registro.

        Returns:
            El registro insertado (con id y fechas generadas)
        """
        def op(session: Session):
            row = self.model(**self._clean(data))
            session.add(row)
            session.flush()
            return self._to_dict(row)
        return self._run(op)

    def insert_many(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Inserta varios registros en una sola llamada (todo o nada)."""
        def op(session: Session):
            rows = [self.model(**self._clean(r)) for r in records]
            session.add_all(rows)
            session.flush()
            return [self._to_dict(r) for r in rows]
        return self._run(op)

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Actualiza campos de un registro.

        Returns:
            El registro actualizado o None si no existe
        """
        def op(session: Session):
            row = session.get(self.model, record_id)
            if row is None:
                return None
            for key, value in self._clean(changes).items():
                if key != 'id':
                    setattr(row, key, value)
            session.flush()
            return self._to_dict(row)
        return self._run(op)

    def delete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """
        Elimina un registro (borrado físico).

        Returns:
            Datos del registro eliminado o None si no existía
        """
        def op(session: Session):
            row = session.get(self.model, record_id)
            if row is None:
                return None
            data = self._to_dict(row)
            session.delete(row)
            return data
        return self._run(op)

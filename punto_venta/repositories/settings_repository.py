# ==============================================================================
# REPOSITORIO DE CONFIGURACIÓN
# ==============================================================================
# Encapsula el acceso a la tabla settings (una fila por usuario).
# ==============================================================================

from typing import Any, Dict, Optional

from sqlalchemy import select

from punto_venta.models.tables import Settings
from .base import BaseRepository


class SettingsRepository(BaseRepository):
    """
    Repositorio de configuración del negocio.

    No hay restricción de unicidad sobre user_id; quien escribe debe
    consultar exists_for_user() antes de decidir entre insertar o actualizar.
    """

    model = Settings

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Fila de configuración del usuario (None si no existe)."""
        return self.find_by('user_id', user_id)

    def exists_for_user(self, user_id: str) -> bool:
        def op(session):
            stmt = select(Settings.id).where(Settings.user_id == user_id).limit(1)
            return session.scalars(stmt).first() is not None
        return self._run(op)

    def update_for_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Actualiza la fila del usuario.

        Returns:
            Fila actualizada o None si el usuario no tiene configuración
        """
        values = {k: v for k, v in self._clean(changes).items() if k not in ('id', 'user_id')}

        def op(session):
            row = session.scalars(select(Settings).where(Settings.user_id == user_id).limit(1)).first()
            if row is None:
                return None
            for key, value in values.items():
                setattr(row, key, value)
            session.flush()
            return self._to_dict(row)
        return self._run(op)

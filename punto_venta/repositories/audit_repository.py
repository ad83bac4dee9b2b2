# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a la tabla audit_logs
# La auditoría es de solo agregar: update y delete lanzan RepositoryError.
# ==============================================================================

from typing import Any, Dict, List, Optional

from sqlalchemy import select

from punto_venta.models.tables import AuditLog, Profile
from .base import BaseRepository, RepositoryError


class AuditRepository(BaseRepository):
    """
    Repositorio para gestión del log de auditoría.

    Formato de cada registro:
    {
        "id": "9c1e...",
        "user_id": "a7b2...",
        "action_type": "venta_creada",
        "table_name": "products",
        "record_id": None,
        "old_values": None,
        "new_values": {"items": [...], "total": 8.12, ...},
        "description": "Venta por $8.12",
        "user_agent": "Mozilla/5.0 ...",
        "ip_address": "127.0.0.1",
        "created_at": datetime(...)
    }
    """

    # Límite por defecto del visor de auditoría
    DEFAULT_LIMIT = 100

    model = AuditLog

    def list_recent(self, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        """
        Registros más recientes primero, unidos con el perfil del usuario.

        Cada registro incluye full_name y email del perfil (None si el
        usuario no tiene perfil o la acción no tiene usuario).

        Args:
            limit: Máximo de registros
        """
        def op(session):
            stmt = (
                select(AuditLog, Profile.full_name, Profile.email)
                .outerjoin(Profile, Profile.id == AuditLog.user_id)
                .order_by(AuditLog.created_at.desc())
                .limit(limit)
            )
            logs = []
            for log, full_name, email in session.execute(stmt).all():
                data = self._to_dict(log)
                data['full_name'] = full_name
                data['email'] = email
                logs.append(data)
            return logs
        return self._run(op)

    def list_by_action(self, action_type: str) -> List[Dict[str, Any]]:
        """Registros de un tipo de acción, más recientes primero."""
        def op(session):
            stmt = (
                select(AuditLog)
                .where(AuditLog.action_type == action_type)
                .order_by(AuditLog.created_at.desc())
            )
            return [self._to_dict(r) for r in session.scalars(stmt).all()]
        return self._run(op)

    # =========================================================================
    # SOLO AGREGAR
    # =========================================================================

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise RepositoryError("audit_logs: los registros de auditoría no se modifican")

    def delete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        raise RepositoryError("audit_logs: los registros de auditoría no se eliminan")

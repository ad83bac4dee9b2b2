# ==============================================================================
# SERVICIO DE CONFIGURACIÓN DEL NEGOCIO
# ==============================================================================
# Una fila de configuración por usuario. Si no existe fila se devuelven los
# valores por defecto de BusinessSettings.
#
# Guardar es "leer y luego escribir": se consulta si existe la fila y
# después se actualiza o se inserta. Dos guardados simultáneos del mismo
# usuario pueden terminar insertando dos filas.
# ==============================================================================

import logging
from typing import Any, Dict, Optional

from punto_venta.models.entities import ActionType, Actor, BusinessSettings
from punto_venta.repositories.base import RepositoryError
from punto_venta.repositories.interfaces import ISettingsRepository
from punto_venta.services.audit_service import AuditService
from punto_venta.utils import is_valid_email

logger = logging.getLogger(__name__)


class SettingsService:
    """
    Servicio de configuración del negocio.

    Responsabilidades:
    - Cargar configuración (o valores por defecto)
    - Guardar cambios parciales sobre la configuración actual
    - Auditar cada guardado
    """

    def __init__(self, settings_repo: ISettingsRepository, audit_service: Optional[AuditService] = None):
        """
        Inicializa el servicio de configuración.

        Args:
            settings_repo: Repositorio de configuración
            audit_service: Servicio de auditoría (opcional)
        """
        self.settings_repo = settings_repo
        self.audit_service = audit_service

    def get_settings(self, user_id: Optional[str]) -> BusinessSettings:
        """
        Configuración del usuario.

        Sin usuario, sin fila o con error de lectura devuelve los valores
        por defecto (el error se registra en el log).
        """
        if not user_id:
            return BusinessSettings()
        try:
            row = self.settings_repo.get_by_user(user_id)
        except RepositoryError as e:
            logger.error("Error loading settings for %s: %s", user_id, e)
            return BusinessSettings()
        if not row:
            return BusinessSettings()
        return BusinessSettings.from_dict(row)

    def _normalize_changes(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Filtra claves desconocidas y convierte cada valor al tipo del campo."""
        defaults = BusinessSettings()
        normalized = {}
        for name in BusinessSettings.field_names():
            if name not in changes:
                continue
            value = changes[name]
            if isinstance(getattr(defaults, name), bool):
                if isinstance(value, str):
                    value = value.strip().lower() in ('1', 'true', 'on', 'si', 'sí', 'yes')
                else:
                    value = bool(value)
            else:
                value = '' if value is None else str(value).strip()
            normalized[name] = value
        return normalized

    def save_settings(self, user_id: str, changes: Dict[str, Any], actor: Optional[Actor] = None) -> Dict[str, Any]:
        """
        Guarda cambios de configuración.

        Mezcla los cambios sobre la configuración actual, verifica si existe
        fila para el usuario y actualiza o inserta según corresponda.

        Args:
            user_id: Usuario dueño de la configuración
            changes: Campos a cambiar (los no incluidos conservan su valor)
            actor: Usuario y petición (auditoría)

        Returns:
            Dict con ok, settings o error
        """
        if not user_id:
            return {'ok': False, 'error': 'Debe iniciar sesión para guardar la configuración'}

        updates = self._normalize_changes(changes or {})
        if updates.get('email') and not is_valid_email(updates['email']):
            return {'ok': False, 'error': 'Email inválido', 'field': 'email'}

        current = self.get_settings(user_id)
        merged = current.to_dict()
        merged.update(updates)

        try:
            if self.settings_repo.exists_for_user(user_id):
                self.settings_repo.update_for_user(user_id, merged)
            else:
                self.settings_repo.insert(dict(merged, user_id=user_id))
        except RepositoryError as e:
            logger.error("Error saving settings for %s: %s", user_id, e)
            return {'ok': False, 'error': 'No se pudo guardar la configuración'}

        if self.audit_service:
            self.audit_service.log_action(
                ActionType.CONFIGURACION_ACTUALIZADA,
                AuditService.TABLE_SETTINGS,
                actor or Actor(user_id=user_id),
                old_values=current.to_dict(),
                new_values=merged,
                description="Configuración del negocio actualizada",
            )

        return {
            'ok': True,
            'mensaje': 'Configuración guardada correctamente',
            'settings': merged,
        }

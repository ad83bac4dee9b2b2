# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza toda la lógica de registro de auditoría.
# Registrar un evento nunca interrumpe la operación que lo origina: si la
# escritura falla, el error se registra en el log y se continúa.
# ==============================================================================

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from punto_venta.models.entities import ACTION_LABELS, ActionType, Actor
from punto_venta.repositories.base import RepositoryError
from punto_venta.repositories.interfaces import IAuditRepository

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Convierte Decimal y fechas para poder guardarlos en una columna JSON."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Centraliza:
    - Registro de eventos (tipo de acción cerrado, ver ActionType)
    - Helpers por dominio: productos, clientes, ventas, inventario, configuración
    - Visor de auditoría: últimos registros con búsqueda
    """

    # Tablas registradas en auditoría
    TABLE_PRODUCTS = 'products'
    TABLE_CUSTOMERS = 'customers'
    TABLE_SETTINGS = 'settings'
    TABLE_PROFILES = 'profiles'

    def __init__(self, audit_repo: IAuditRepository, view_limit: int = 100):
        """
        Inicializa el servicio de auditoría.

        Args:
            audit_repo: Repositorio de auditoría
            view_limit: Registros que muestra el visor
        """
        self.audit_repo = audit_repo
        self.view_limit = view_limit

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log_action(
        self,
        action_type: ActionType,
        table_name: str,
        actor: Optional[Actor] = None,
        record_id: Optional[str] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Registra un evento de auditoría.

        Args:
            action_type: Tipo de acción
            table_name: Tabla afectada
            actor: Usuario y datos de la petición
            record_id: ID del registro afectado (opcional)
            old_values: Estado anterior (opcional)
            new_values: Estado nuevo (opcional)
            description: Texto legible

        Returns:
            Registro creado, o None si no se pudo escribir
        """
        actor = actor or Actor()
        entry = {
            'user_id': actor.user_id,
            'action_type': ActionType(action_type).value,
            'table_name': table_name,
            'record_id': str(record_id) if record_id is not None else None,
            'old_values': _json_safe(old_values) if old_values is not None else None,
            'new_values': _json_safe(new_values) if new_values is not None else None,
            'description': description,
            'user_agent': actor.user_agent,
            'ip_address': actor.ip_address,
        }
        try:
            return self.audit_repo.insert(entry)
        except RepositoryError as e:
            logger.error("Error creating audit log (%s): %s", entry['action_type'], e)
            return None

    def log_product_created(self, actor: Optional[Actor], product: Dict[str, Any]) -> None:
        self.log_action(
            ActionType.PRODUCTO_CREADO, self.TABLE_PRODUCTS, actor,
            record_id=product.get('id'),
            new_values=product,
            description=f"Producto creado: {product.get('name')} ({product.get('sku')})",
        )

    def log_product_updated(self, actor: Optional[Actor], old: Dict[str, Any], new: Dict[str, Any]) -> None:
        self.log_action(
            ActionType.PRODUCTO_ACTUALIZADO, self.TABLE_PRODUCTS, actor,
            record_id=new.get('id'),
            old_values=old,
            new_values=new,
            description=f"Producto actualizado: {new.get('name')}",
        )

    def log_product_deleted(self, actor: Optional[Actor], product: Dict[str, Any]) -> None:
        self.log_action(
            ActionType.PRODUCTO_ELIMINADO, self.TABLE_PRODUCTS, actor,
            record_id=product.get('id'),
            old_values=product,
            description=f"Producto eliminado: {product.get('name')}",
        )

    def log_customer_created(self, actor: Optional[Actor], customer: Dict[str, Any]) -> None:
        # El tipo de acción cerrado no tiene valores para clientes
        self.log_action(
            ActionType.USUARIO_CREADO, self.TABLE_CUSTOMERS, actor,
            record_id=customer.get('id'),
            new_values=customer,
            description=f"Cliente creado: {customer.get('name')}",
        )

    def log_customer_updated(self, actor: Optional[Actor], old: Dict[str, Any], new: Dict[str, Any]) -> None:
        self.log_action(
            ActionType.USUARIO_ACTUALIZADO, self.TABLE_CUSTOMERS, actor,
            record_id=new.get('id'),
            old_values=old,
            new_values=new,
            description=f"Cliente actualizado: {new.get('name')}",
        )

    def log_customer_deleted(self, actor: Optional[Actor], customer: Dict[str, Any]) -> None:
        self.log_action(
            ActionType.USUARIO_ELIMINADO, self.TABLE_CUSTOMERS, actor,
            record_id=customer.get('id'),
            old_values=customer,
            description=f"Cliente eliminado: {customer.get('name')}",
        )

    # =========================================================================
    # VISOR DE AUDITORÍA
    # =========================================================================

    @staticmethod
    def action_label(action_type: str) -> str:
        """Etiqueta legible de un tipo de acción."""
        try:
            return ACTION_LABELS[ActionType(action_type)]
        except ValueError:
            return action_type

    def get_recent_logs(self, search: str = '') -> Dict[str, Any]:
        """
        Últimos registros de auditoría, opcionalmente filtrados.

        La búsqueda se aplica sobre los registros ya cargados (no en la
        consulta) y compara, sin distinguir mayúsculas, contra tipo de
        acción, tabla, descripción, nombre y email del usuario.

        Args:
            search: Texto a buscar (vacío = todos)

        Returns:
            Dict con ok y logs
        """
        try:
            logs = self.audit_repo.list_recent(self.view_limit)
        except RepositoryError as e:
            logger.error("Error loading audit logs: %s", e)
            return {'ok': False, 'error': 'No se pudieron cargar los registros de auditoría'}

        term = (search or '').strip().lower()
        if term:
            def matches(log: Dict[str, Any]) -> bool:
                fields = (
                    log.get('action_type'), log.get('table_name'),
                    log.get('description'), log.get('full_name'), log.get('email'),
                )
                return any(term in (f or '').lower() for f in fields)
            logs = [log for log in logs if matches(log)]

        for log in logs:
            log['action_label'] = self.action_label(log.get('action_type'))
            log['user_display'] = log.get('full_name') or log.get('email') or 'Sistema'

        return {'ok': True, 'logs': logs, 'total': len(logs)}

# ==============================================================================
# SERVICIO DE CLIENTES
# ==============================================================================
# CRUD de clientes con validación y auditoría.
#
# total_purchases y last_purchase_at se muestran pero ningún flujo del
# sistema los incrementa (la venta no se asocia a un cliente).
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from punto_venta.models.entities import Actor, customer_badge
from punto_venta.repositories.base import RepositoryError
from punto_venta.repositories.interfaces import ICustomerRepository
from punto_venta.services.audit_service import AuditService
from punto_venta.utils import is_valid_email

logger = logging.getLogger(__name__)


class CustomerService:
    """
    Servicio de gestión de clientes.

    Responsabilidades:
    - Listar y buscar clientes (nombre o email)
    - Crear/editar/eliminar con validación y auditoría
    - Calcular el distintivo por cantidad de compras
    """

    NAME_MAX = 100
    PHONE_MAX = 20

    def __init__(self, customer_repo: ICustomerRepository, audit_service: Optional[AuditService] = None):
        self.customer_repo = customer_repo
        self.audit_service = audit_service

    @staticmethod
    def get_badge(customer: Dict[str, Any]) -> str:
        """Distintivo del cliente: Regular, Frecuente o VIP."""
        return customer_badge(customer.get('total_purchases'))

    def _with_badge(self, customers: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for customer in customers:
            customer['badge'] = self.get_badge(customer)
        return customers

    def list_customers(self) -> List[Dict[str, Any]]:
        return self._with_badge(self.customer_repo.list_customers())

    def search_customers(self, term: str) -> List[Dict[str, Any]]:
        """Clientes cuyo nombre o email contiene el término (vacío = todos)."""
        if not term or not term.strip():
            return self.list_customers()
        return self._with_badge(self.customer_repo.search(term))

    def validate_customer(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Valida y normaliza los datos del formulario de cliente.

        Returns:
            {'ok': True, 'values': {...}} o {'ok': False, 'error': ..., 'field': ...}
        """
        name = (data.get('name') or '').strip()
        if not name:
            return {'ok': False, 'error': 'El nombre es requerido', 'field': 'name'}
        if len(name) > self.NAME_MAX:
            return {'ok': False, 'error': f'El nombre no puede superar {self.NAME_MAX} caracteres', 'field': 'name'}

        email = (data.get('email') or '').strip()
        if email and not is_valid_email(email):
            return {'ok': False, 'error': 'Email inválido', 'field': 'email'}

        phone = (data.get('phone') or '').strip()
        if len(phone) > self.PHONE_MAX:
            return {'ok': False, 'error': f'El teléfono no puede superar {self.PHONE_MAX} caracteres', 'field': 'phone'}

        return {
            'ok': True,
            'values': {'name': name, 'email': email or None, 'phone': phone or None},
        }

    def create_customer(self, data: Dict[str, Any], actor: Optional[Actor] = None) -> Dict[str, Any]:
        validation = self.validate_customer(data)
        if not validation['ok']:
            return validation

        values = validation['values']
        values['total_purchases'] = 0
        values['created_by'] = actor.user_id if actor else None
        try:
            customer = self.customer_repo.insert(values)
        except RepositoryError as e:
            logger.error("Error creating customer: %s", e)
            return {'ok': False, 'error': 'Error al guardar el cliente'}

        if self.audit_service:
            self.audit_service.log_customer_created(actor, customer)

        customer['badge'] = self.get_badge(customer)
        return {'ok': True, 'mensaje': 'Cliente creado correctamente', 'customer': customer}

    def update_customer(self, customer_id: str, data: Dict[str, Any], actor: Optional[Actor] = None) -> Dict[str, Any]:
        validation = self.validate_customer(data)
        if not validation['ok']:
            return validation

        try:
            old = self.customer_repo.get_by_id(customer_id)
            if not old:
                return {'ok': False, 'error': 'Cliente no encontrado', 'not_found': True}
            customer = self.customer_repo.update(customer_id, validation['values'])
        except RepositoryError as e:
            logger.error("Error updating customer %s: %s", customer_id, e)
            return {'ok': False, 'error': 'Error al guardar el cliente'}

        if self.audit_service:
            self.audit_service.log_customer_updated(actor, old, customer)

        customer['badge'] = self.get_badge(customer)
        return {'ok': True, 'mensaje': 'Cliente actualizado correctamente', 'customer': customer}

    def delete_customer(self, customer_id: str, actor: Optional[Actor] = None) -> Dict[str, Any]:
        """Elimina un cliente de forma permanente."""
        try:
            deleted = self.customer_repo.delete(customer_id)
        except RepositoryError as e:
            logger.error("Error deleting customer %s: %s", customer_id, e)
            return {'ok': False, 'error': 'Error al eliminar el cliente'}

        if not deleted:
            return {'ok': False, 'error': 'Cliente no encontrado', 'not_found': True}

        if self.audit_service:
            self.audit_service.log_customer_deleted(actor, deleted)

        return {'ok': True, 'mensaje': 'Cliente eliminado correctamente'}

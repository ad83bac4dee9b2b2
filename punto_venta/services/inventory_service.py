# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Resumen de stock y ajustes manuales con historial de movimientos.
#
# El ajuste es en dos pasos: request_adjustment() valida y devuelve una
# vista previa; confirm_adjustment() vuelve a validar contra la fila actual
# y escribe. Las escrituras (stock, movimiento, auditoría) son llamadas
# independientes, sin bloqueo: si dos ajustes se cruzan gana el último.
# ==============================================================================

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from punto_venta.models.entities import ActionType, Actor, MovementType
from punto_venta.repositories.base import RepositoryError
from punto_venta.repositories.interfaces import IMovementRepository, IProductRepository
from punto_venta.services.audit_service import AuditService
from punto_venta.services.settings_service import SettingsService
from punto_venta.utils import money, to_int

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Servicio para gestión de inventario.

    Responsabilidades:
    - Totales de inventario (productos, stock bajo, agotados, valor)
    - Lista de stock bajo (según la preferencia low_stock_alerts)
    - Ajustes manuales de stock con movimiento y auditoría
    """

    RECENT_MOVEMENTS_LIMIT = 20

    def __init__(
        self,
        product_repo: IProductRepository,
        movement_repo: IMovementRepository,
        audit_service: Optional[AuditService] = None,
        settings_service: Optional[SettingsService] = None,
        low_stock_threshold: int = 10
    ):
        """
        Inicializa el servicio de inventario.

        Args:
            product_repo: Repositorio de productos
            movement_repo: Repositorio de movimientos
            audit_service: Servicio de auditoría (opcional)
            settings_service: Para leer low_stock_alerts (opcional)
            low_stock_threshold: Stock igual o menor se considera bajo
        """
        self.product_repo = product_repo
        self.movement_repo = movement_repo
        self.audit_service = audit_service
        self.settings_service = settings_service
        self.low_stock_threshold = low_stock_threshold

    # =========================================================================
    # RESUMEN
    # =========================================================================

    def is_low_stock(self, product: Dict[str, Any]) -> bool:
        stock = product.get('stock') or 0
        return 0 < stock <= self.low_stock_threshold

    def get_overview(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Resumen del inventario.

        Args:
            user_id: Usuario cuya preferencia low_stock_alerts se respeta

        Returns:
            Dict con ok, stats, low_stock, products y movements
        """
        try:
            products = self.product_repo.list_products()
            movements = self.movement_repo.list_recent(self.RECENT_MOVEMENTS_LIMIT)
        except RepositoryError as e:
            logger.error("Error loading inventory: %s", e)
            return {'ok': False, 'error': 'No se pudo cargar el inventario'}

        low_stock = [p for p in products if self.is_low_stock(p)]
        out_of_stock = [p for p in products if (p.get('stock') or 0) <= 0]
        total_value = sum(
            (money(p.get('price')) * (p.get('stock') or 0) for p in products),
            Decimal('0.00'),
        )

        alerts_enabled = True
        if self.settings_service:
            alerts_enabled = self.settings_service.get_settings(user_id).low_stock_alerts

        return {
            'ok': True,
            'stats': {
                'total_products': len(products),
                'low_stock_count': len(low_stock),
                'out_of_stock_count': len(out_of_stock),
                'total_value': money(total_value),
            },
            'low_stock': low_stock if alerts_enabled else [],
            'low_stock_threshold': self.low_stock_threshold,
            'products': products,
            'movements': movements,
        }

    # =========================================================================
    # AJUSTES DE STOCK
    # =========================================================================

    def _validate_adjustment(self, product: Optional[Dict[str, Any]], delta: Optional[int]) -> Optional[Dict[str, Any]]:
        """Devuelve un dict de error o None si el ajuste es válido."""
        if delta is None:
            return {'ok': False, 'error': 'Cantidad inválida', 'field': 'delta'}
        if delta == 0:
            return {'ok': False, 'error': 'La cantidad debe ser distinta de 0', 'field': 'delta'}
        if not product:
            return {'ok': False, 'error': 'Producto no encontrado', 'not_found': True}
        stock = product.get('stock') or 0
        if delta < 0 and abs(delta) > stock:
            return {
                'ok': False,
                'error': f'No se pueden retirar {abs(delta)} unidades. Stock actual: {stock}',
                'field': 'delta',
            }
        return None

    @staticmethod
    def movement_type_for(delta: int) -> MovementType:
        """Entrada si suma stock, ajuste si resta."""
        return MovementType.ENTRADA if delta > 0 else MovementType.AJUSTE

    def request_adjustment(self, product_id: str, delta: Any) -> Dict[str, Any]:
        """
        Valida un ajuste y devuelve la vista previa para confirmar.

        Args:
            product_id: Producto a ajustar
            delta: Unidades a sumar (positivo) o restar (negativo)

        Returns:
            Dict con ok, requires_confirmation y preview
        """
        delta = to_int(delta)
        try:
            product = self.product_repo.get_by_id(product_id) if product_id else None
        except RepositoryError as e:
            logger.error("Error loading product %s: %s", product_id, e)
            return {'ok': False, 'error': 'No se pudo cargar el producto'}

        error = self._validate_adjustment(product, delta)
        if error:
            return error

        previous = product.get('stock') or 0
        return {
            'ok': True,
            'requires_confirmation': True,
            'preview': {
                'product_id': product['id'],
                'product_name': product.get('name'),
                'delta': delta,
                'previous_stock': previous,
                'new_stock': max(0, previous + delta),
                'movement_type': self.movement_type_for(delta).value,
            },
        }

    def confirm_adjustment(
        self,
        product_id: str,
        delta: Any,
        notes: str = '',
        actor: Optional[Actor] = None
    ) -> Dict[str, Any]:
        """
        Aplica un ajuste de stock.

        Vuelve a validar contra la fila actual, escribe el stock nuevo,
        agrega el movimiento y registra la auditoría. No hay rollback: si el
        movimiento falla, el stock ya quedó actualizado.

        Returns:
            Dict con ok, product, products y movements (listas refrescadas)
        """
        delta = to_int(delta)
        try:
            product = self.product_repo.get_by_id(product_id) if product_id else None
        except RepositoryError as e:
            logger.error("Error loading product %s: %s", product_id, e)
            return {'ok': False, 'error': 'No se pudo cargar el producto'}

        error = self._validate_adjustment(product, delta)
        if error:
            return error

        previous = product.get('stock') or 0
        new_stock = max(0, previous + delta)
        movement_type = self.movement_type_for(delta)
        notes = (notes or '').strip() or None

        try:
            updated = self.product_repo.set_stock(product['id'], new_stock)
            movement = self.movement_repo.insert({
                'product_id': product['id'],
                'movement_type': movement_type.value,
                'quantity': delta,
                'previous_stock': previous,
                'new_stock': new_stock,
                'notes': notes,
                'user_id': actor.user_id if actor else None,
            })
        except RepositoryError as e:
            logger.error("Error adjusting stock for %s: %s", product_id, e)
            return {'ok': False, 'error': 'Error al ajustar el inventario'}

        if self.audit_service:
            self.audit_service.log_action(
                ActionType.AJUSTE_INVENTARIO,
                AuditService.TABLE_PRODUCTS,
                actor,
                record_id=product['id'],
                old_values={'stock': previous},
                new_values={'stock': new_stock, 'delta': delta, 'movement_type': movement_type.value},
                description=f"Ajuste de inventario: {product.get('name')} ({'+' if delta > 0 else ''}{delta})",
            )

        try:
            products = self.product_repo.list_products()
            movements = self.movement_repo.list_recent(self.RECENT_MOVEMENTS_LIMIT)
        except RepositoryError as e:
            logger.error("Error reloading inventory: %s", e)
            products, movements = [], []

        return {
            'ok': True,
            'mensaje': 'Inventario actualizado correctamente',
            'product': updated,
            'movement': movement,
            'products': products,
            'movements': movements,
        }

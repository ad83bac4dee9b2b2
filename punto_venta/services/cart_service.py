# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con el carrito de compras.
# El carrito se almacena en la sesión de Flask (session['carrito']); fuera de
# una petición se puede usar MemoryCartStore.
#
# Cada línea guarda una copia del producto al momento de agregarlo. El stock
# de esa copia es el único límite de cantidad y no se vuelve a consultar.
# ==============================================================================

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from punto_venta.models.entities import ActionType, Actor, CartItem
from punto_venta.repositories.base import RepositoryError
from punto_venta.services.audit_service import AuditService
from punto_venta.services.catalog_service import CatalogService
from punto_venta.utils import money, to_int

logger = logging.getLogger(__name__)


# ==============================================================================
# ALMACENAMIENTO DEL CARRITO
# ==============================================================================

class SessionCartStore:
    """Guarda el carrito en la sesión de Flask."""

    SESSION_KEY = 'carrito'

    def load(self) -> List[Dict[str, Any]]:
        from flask import session
        return list(session.get(self.SESSION_KEY, []))

    def save(self, items: List[Dict[str, Any]]) -> None:
        from flask import session
        session[self.SESSION_KEY] = items
        session.modified = True


class MemoryCartStore:
    """Guarda el carrito en memoria (scripts y tests sin petición HTTP)."""

    def __init__(self):
        self._items: List[Dict[str, Any]] = []

    def load(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._items]

    def save(self, items: List[Dict[str, Any]]) -> None:
        self._items = [dict(item) for item in items]


# ==============================================================================
# SERVICIO
# ==============================================================================

class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/eliminar items del carrito
    - Validar contra el stock capturado al agregar
    - Calcular subtotal, IVA y total
    - Vaciar o cancelar (con confirmación explícita)
    """

    def __init__(
        self,
        catalog_service: CatalogService,
        audit_service: Optional[AuditService] = None,
        store=None,
        tax_rate: Any = '0.16'
    ):
        """
        Inicializa el servicio de carrito.

        Args:
            catalog_service: Servicio de catálogo (lectura de productos)
            audit_service: Servicio de auditoría (opcional)
            store: Almacenamiento del carrito (por defecto, sesión de Flask)
            tax_rate: Tasa de IVA
        """
        self.catalog_service = catalog_service
        self.audit_service = audit_service
        self.store = store or SessionCartStore()
        self.tax_rate = Decimal(str(tax_rate))

    def _get_cart(self) -> List[CartItem]:
        """Obtiene el carrito actual."""
        return [CartItem.from_dict(item) for item in self.store.load()]

    def _save_cart(self, cart: List[CartItem]) -> None:
        self.store.save([item.to_dict() for item in cart])

    @staticmethod
    def _find(cart: List[CartItem], product_id: str) -> Optional[CartItem]:
        for item in cart:
            if item.id == str(product_id):
                return item
        return None

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_items(self) -> List[CartItem]:
        return self._get_cart()

    def is_empty(self) -> bool:
        return not self._get_cart()

    def compute_totals(self, cart: List[CartItem]) -> Dict[str, Decimal]:
        """
        Totales de una lista de líneas.

        subtotal = Σ precio × cantidad
        tax      = subtotal × tasa, redondeado a 2 decimales (mitad hacia arriba)
        total    = subtotal + tax
        """
        subtotal = money(sum((item.price * item.quantity for item in cart), Decimal('0')))
        tax = money(subtotal * self.tax_rate)
        return {'subtotal': subtotal, 'tax': tax, 'total': subtotal + tax}

    def get_totals(self) -> Dict[str, Decimal]:
        return self.compute_totals(self._get_cart())

    def get_cart(self) -> Dict[str, Any]:
        """
        Obtiene el carrito con totales calculados.

        Returns:
            Dict con items, totals, total_items, items_count
        """
        cart = self._get_cart()
        items = []
        for item in cart:
            data = item.to_dict()
            data['line_total'] = item.line_total
            items.append(data)
        return {
            'items': items,
            'totals': self.compute_totals(cart),
            'total_items': sum(item.quantity for item in cart),
            'items_count': len(cart),
        }

    def _result(self, mensaje: str, **extra) -> Dict[str, Any]:
        result = {'ok': True, 'mensaje': mensaje, 'carrito': self.get_cart()}
        result.update(extra)
        return result

    # =========================================================================
    # MODIFICACIONES
    # =========================================================================

    def add_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega una unidad de un producto ya cargado.

        Si la línea existe se incrementa; se rechaza si la cantidad ya
        alcanzó el stock capturado en la línea. Una línea nueva se rechaza
        si el producto no tiene stock.
        """
        cart = self._get_cart()
        existing = self._find(cart, product['id'])

        if existing:
            if existing.quantity >= existing.stock:
                return {
                    'ok': False,
                    'error': f"Stock insuficiente. Ya tienes {existing.quantity} en carrito. Disponible: {existing.stock}",
                    'disponible': existing.stock,
                }
            existing.quantity += 1
        else:
            item = CartItem.from_product(product)
            if item.stock <= 0:
                return {'ok': False, 'error': f"{item.name} no tiene stock disponible", 'disponible': 0}
            cart.append(item)

        self._save_cart(cart)
        return self._result('Producto agregado al carrito')

    def add_item(self, product_id: str) -> Dict[str, Any]:
        """
        Agrega una unidad del producto indicado.

        Args:
            product_id: ID del producto

        Returns:
            Dict con resultado (ok, error, carrito)
        """
        if not product_id:
            return {'ok': False, 'error': 'ID de producto inválido'}
        try:
            product = self.catalog_service.get_product(product_id)
        except RepositoryError as e:
            logger.error("Error loading product %s: %s", product_id, e)
            return {'ok': False, 'error': 'No se pudo cargar el producto'}
        if not product:
            return {'ok': False, 'error': 'Producto no encontrado', 'not_found': True}
        return self.add_product(product)

    def update_quantity(self, product_id: str, delta: Any) -> Dict[str, Any]:
        """
        Cambia la cantidad de una línea en delta unidades.

        Una cantidad resultante de 0 o menos elimina la línea. Los aumentos
        más allá del stock capturado se rechazan.
        """
        delta = to_int(delta)
        if delta is None:
            return {'ok': False, 'error': 'Cantidad inválida'}

        cart = self._get_cart()
        item = self._find(cart, product_id)
        if not item:
            return {'ok': False, 'error': 'El producto no está en el carrito', 'not_found': True}

        new_quantity = item.quantity + delta
        if new_quantity <= 0:
            cart = [i for i in cart if i.id != item.id]
            self._save_cart(cart)
            return self._result('Producto eliminado del carrito')

        if new_quantity > item.stock:
            return {
                'ok': False,
                'error': f"Stock insuficiente. Disponible: {item.stock}",
                'disponible': item.stock,
            }

        item.quantity = new_quantity
        self._save_cart(cart)
        return self._result('Cantidad actualizada')

    def remove_item(self, product_id: str) -> Dict[str, Any]:
        """Elimina una línea del carrito (sin error si no estaba)."""
        if not product_id:
            return {'ok': False, 'error': 'ID de producto inválido'}
        cart = [item for item in self._get_cart() if item.id != str(product_id)]
        self._save_cart(cart)
        return self._result('Producto eliminado del carrito')

    def empty(self) -> None:
        """Vacía el carrito sin confirmación (uso interno tras cobrar)."""
        self._save_cart([])

    def clear_cart(self, confirmed: bool = False) -> Dict[str, Any]:
        """
        Vacía el carrito.

        Sin confirmed=True no cambia nada y pide confirmación.
        """
        if not confirmed:
            return {
                'ok': False,
                'requires_confirmation': True,
                'error': '¿Vaciar el carrito? Confirme la operación',
            }
        self.empty()
        return self._result('Carrito vaciado')

    def cancel_sale(self, confirmed: bool = False, actor: Optional[Actor] = None) -> Dict[str, Any]:
        """
        Cancela la venta en curso: vacía el carrito y registra venta_cancelada.

        Sin confirmed=True no cambia nada y pide confirmación.
        """
        cart = self._get_cart()
        if not cart:
            return {'ok': False, 'error': 'El carrito está vacío'}
        if not confirmed:
            return {
                'ok': False,
                'requires_confirmation': True,
                'error': '¿Cancelar la venta en curso? Confirme la operación',
            }

        totals = self.compute_totals(cart)
        self.empty()

        if self.audit_service:
            self.audit_service.log_action(
                ActionType.VENTA_CANCELADA,
                AuditService.TABLE_PRODUCTS,
                actor,
                old_values={
                    'items': [
                        {'id': i.id, 'name': i.name, 'quantity': i.quantity, 'price': i.price}
                        for i in cart
                    ],
                    'total': totals['total'],
                },
                description=f"Venta cancelada por ${totals['total']:.2f}",
            )

        return self._result('Venta cancelada')

    # =========================================================================
    # BÚSQUEDA (lector de códigos / buscador)
    # =========================================================================

    def search_and_add(self, term: str) -> Dict[str, Any]:
        """
        Busca un producto por SKU o nombre y lo agrega.

        1. Coincidencia exacta (sin distinguir mayúsculas) de SKU o nombre.
        2. Si no hay, una única coincidencia parcial (nombre o SKU contiene).
        3. Sin coincidencias → error. Varias parciales → sin cambios ni error.
        """
        term = (term or '').strip()
        if not term:
            return {'ok': False, 'error': 'Ingrese un SKU o nombre'}

        try:
            products = self.catalog_service.list_products()
        except RepositoryError as e:
            logger.error("Error searching products: %s", e)
            return {'ok': False, 'error': 'No se pudieron cargar los productos'}

        needle = term.lower()
        for product in products:
            if (product.get('sku') or '').lower() == needle or (product.get('name') or '').lower() == needle:
                return self.add_product(product)

        partial = [
            p for p in products
            if needle in (p.get('name') or '').lower() or needle in (p.get('sku') or '').lower()
        ]
        if len(partial) == 1:
            return self.add_product(partial[0])
        if not partial:
            return {'ok': False, 'error': 'Producto no encontrado', 'not_found': True}

        return {
            'ok': True,
            'mensaje': f'{len(partial)} productos coinciden con la búsqueda',
            'coincidencias': partial,
            'carrito': self.get_cart(),
        }

# ==============================================================================
# SERVICIO DE COBRO (CHECKOUT)
# ==============================================================================
# Convierte el carrito en una venta:
#
# 1. Por cada línea, en orden, escribe stock = stock_capturado - cantidad.
#    Cada escritura es una llamada independiente.
# 2. Registra una entrada venta_creada con el resumen de la venta.
# 3. Si la impresora está habilitada, genera el ticket HTML.
# 4. Vacía el carrito y devuelve la lista de productos actualizada.
#
# Ante el primer fallo del almacén se detiene: las líneas ya escritas NO se
# revierten y el carrito se conserva. No se guarda un registro de venta ni
# movimientos de inventario; la auditoría es la única huella de la venta.
# ==============================================================================

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from punto_venta.models.entities import ActionType, Actor
from punto_venta.performance_logger import profile_function
from punto_venta.repositories.base import RepositoryError
from punto_venta.repositories.interfaces import IProductRepository
from punto_venta.services.audit_service import AuditService
from punto_venta.services.cart_service import CartService
from punto_venta.services.settings_service import SettingsService
from punto_venta.services.ticket_service import TicketService

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Servicio de cobro del punto de venta.

    No coordina cobros simultáneos: dos cajas que venden el mismo producto
    escriben cada una su propio stock calculado.
    """

    def __init__(
        self,
        cart_service: CartService,
        product_repo: IProductRepository,
        audit_service: AuditService,
        settings_service: SettingsService,
        ticket_service: TicketService
    ):
        self.cart_service = cart_service
        self.product_repo = product_repo
        self.audit_service = audit_service
        self.settings_service = settings_service
        self.ticket_service = ticket_service

    @profile_function(name="Cobrar venta")
    def checkout(self, actor: Optional[Actor] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Cobra el carrito actual.

        Args:
            actor: Vendedor que cobra (usuario y datos de la petición)
            now: Momento de la venta (por defecto, ahora)

        Returns:
            Dict con ok, mensaje, totals, ticket, ticket_html (si la
            impresora está habilitada) y products; o ok False con error
        """
        cart = self.cart_service.get_items()
        if not cart:
            return {'ok': False, 'error': 'El carrito está vacío'}

        totals = self.cart_service.compute_totals(cart)
        settings = self.settings_service.get_settings(actor.user_id if actor else None)
        ticket = self.ticket_service.build_ticket(cart, totals, settings, now or datetime.now(timezone.utc))

        try:
            for item in cart:
                # Se usa el stock capturado al agregar, no se vuelve a leer
                updated = self.product_repo.set_stock(item.id, item.stock - item.quantity)
                if updated is None:
                    raise RepositoryError(f"products: {item.id} no existe")
        except RepositoryError as e:
            logger.error("Error processing sale %s: %s", ticket['ticket_number'], e)
            return {'ok': False, 'error': 'Error al procesar la venta. Intente nuevamente'}

        self.audit_service.log_action(
            ActionType.VENTA_CREADA,
            AuditService.TABLE_PRODUCTS,
            actor,
            new_values={
                'items': [
                    {'id': i.id, 'name': i.name, 'sku': i.sku, 'quantity': i.quantity, 'price': i.price}
                    for i in cart
                ],
                'subtotal': totals['subtotal'],
                'tax': totals['tax'],
                'total': totals['total'],
                'ticket_number': ticket['ticket_number'],
            },
            description=f"Venta {ticket['ticket_number']} por ${totals['total']:.2f}",
        )

        ticket_html = None
        if settings.printer_enabled:
            ticket_html = self.ticket_service.render_html(ticket, settings)

        self.cart_service.empty()

        try:
            products = self.product_repo.list_products()
        except RepositoryError as e:
            logger.error("Error reloading products after sale: %s", e)
            products = []

        return {
            'ok': True,
            'mensaje': f"Venta completada: ${totals['total']:.2f}",
            'totals': totals,
            'ticket': ticket,
            'ticket_html': ticket_html,
            'products': products,
        }

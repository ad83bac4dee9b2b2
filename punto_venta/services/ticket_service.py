# ==============================================================================
# SERVICIO DE TICKETS
# ==============================================================================
# Genera el ticket de compra en dos formatos:
# - HTML (ventana de impresión, ancho de 80mm)
# - Texto plano (descarga ticket-<numero>.txt)
#
# Las plantillas están en punto_venta/templates/ y se renderizan con Jinja2
# directamente, sin depender de una petición de Flask.
# ==============================================================================

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from punto_venta.models.entities import BusinessSettings, CartItem
from punto_venta.utils import format_currency, money


def generate_ticket_number(now: Optional[datetime] = None) -> str:
    """
    Número de ticket: T<AAAAMMDD>-<últimos 6 dígitos de epoch en ms>.

    La fecha se toma en UTC.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    date_part = now.astimezone(timezone.utc).strftime('%Y%m%d')
    millis = str(int(now.timestamp()) * 1000 + now.microsecond // 1000)
    return f"T{date_part}-{millis[-6:]}"


def format_ticket_date(now: datetime) -> str:
    """Fecha del ticket en formato dd/mm/aaaa, HH:MM (hora local)."""
    if now.tzinfo is not None:
        now = now.astimezone()
    return now.strftime('%d/%m/%Y, %H:%M')


class TicketService:
    """
    Servicio de generación de tickets.

    Uso:
        ticket = ticket_service.build_ticket(items, totals, settings)
        html = ticket_service.render_html(ticket, settings)
        text = ticket_service.render_text(ticket, settings)
    """

    DEFAULT_PAYMENT_METHOD = 'Efectivo'

    def __init__(self):
        self.env = Environment(
            loader=PackageLoader('punto_venta', 'templates'),
            autoescape=select_autoescape(['html']),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters['currency'] = format_currency

    def build_ticket(
        self,
        items: List[CartItem],
        totals: Dict[str, Any],
        settings: Optional[BusinessSettings] = None,
        now: Optional[datetime] = None,
        payment_method: str = DEFAULT_PAYMENT_METHOD
    ) -> Dict[str, Any]:
        """
        Arma los datos del ticket a partir de las líneas del carrito.

        Los montos se guardan como texto "0.00" para que el ticket se pueda
        guardar en la sesión de Flask y volver a renderizar después.

        Returns:
            Dict con ticket_number, date, payment_method, items y totales
        """
        now = now or datetime.now(timezone.utc)
        settings = settings or BusinessSettings()
        return {
            'ticket_number': generate_ticket_number(now),
            'date': format_ticket_date(now),
            'payment_method': payment_method or self.DEFAULT_PAYMENT_METHOD,
            'business': settings.to_dict(),
            'items': [
                {
                    'name': item.name,
                    'quantity': item.quantity,
                    'price': f"{money(item.price):.2f}",
                    'line_total': f"{item.line_total:.2f}",
                }
                for item in items
            ],
            'subtotal': f"{money(totals['subtotal']):.2f}",
            'tax': f"{money(totals['tax']):.2f}",
            'total': f"{money(totals['total']):.2f}",
        }

    def _business(self, ticket: Dict[str, Any], settings: Optional[BusinessSettings]) -> Dict[str, Any]:
        if settings is not None:
            return settings.to_dict()
        return ticket.get('business') or BusinessSettings().to_dict()

    def render_html(self, ticket: Dict[str, Any], settings: Optional[BusinessSettings] = None) -> str:
        """Ticket en HTML para imprimir."""
        template = self.env.get_template('ticket.html')
        return template.render(ticket=ticket, business=self._business(ticket, settings))

    def render_text(self, ticket: Dict[str, Any], settings: Optional[BusinessSettings] = None) -> str:
        """Ticket en texto plano para descargar."""
        template = self.env.get_template('ticket.txt')
        return template.render(ticket=ticket, business=self._business(ticket, settings))

    @staticmethod
    def text_filename(ticket_number: str) -> str:
        return f"ticket-{ticket_number}.txt"

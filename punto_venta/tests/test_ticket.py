from datetime import datetime, timezone
from decimal import Decimal

from punto_venta.models.entities import BusinessSettings, CartItem
from punto_venta.services import TicketService, generate_ticket_number

SALE_TIME = datetime(2024, 3, 15, 12, 0, 0, 123000, tzinfo=timezone.utc)


def _items():
    return [
        CartItem(id='1', name='Café', price=Decimal('3.50'), category='Bebidas', stock=20, quantity=2),
        CartItem(id='2', name='Dona <glaseada>', price=Decimal('1.25'), category='Panadería', stock=5, quantity=1),
    ]


def _totals():
    return {'subtotal': Decimal('8.25'), 'tax': Decimal('1.32'), 'total': Decimal('9.57')}


def test_ticket_number_format():
    assert generate_ticket_number(SALE_TIME) == 'T20240315-000123'


def test_build_ticket_stores_amounts_as_text():
    ticket = TicketService().build_ticket(_items(), _totals(), BusinessSettings(), SALE_TIME)
    assert ticket['ticket_number'] == 'T20240315-000123'
    assert ticket['payment_method'] == 'Efectivo'
    assert ticket['total'] == '9.57'
    assert ticket['items'][0] == {'name': 'Café', 'quantity': 2, 'price': '3.50', 'line_total': '7.00'}


def test_render_text_ticket():
    service = TicketService()
    settings = BusinessSettings(business_name='Cafetería Luna', rfc='XAXX010101000', phone='555-0000')
    ticket = service.build_ticket(_items(), _totals(), settings, SALE_TIME)

    text = service.render_text(ticket)
    assert 'CAFETERÍA LUNA' in text
    assert 'RFC: XAXX010101000' in text
    assert 'Tel: 555-0000' in text
    assert 'Ticket: T20240315-000123' in text
    assert '2 x $3.50 = $7.00' in text
    assert 'IVA (16%):           $1.32' in text
    assert 'TOTAL:               $9.57' in text
    # Sin dirección configurada no se imprime la línea
    assert 'None' not in text


def test_render_html_escapes_names():
    service = TicketService()
    ticket = service.build_ticket(_items(), _totals(), BusinessSettings(), SALE_TIME)
    html = service.render_html(ticket)
    assert 'Dona &lt;glaseada&gt;' in html
    assert 'Mi Negocio' in html
    assert '$9.57' in html


def test_text_filename():
    assert TicketService.text_filename('T20240315-000123') == 'ticket-T20240315-000123.txt'

import re
from decimal import Decimal

from punto_venta.models.entities import ActionType
from punto_venta.repositories.base import RepositoryError
from punto_venta.services import CheckoutService


class FlakyProductRepo:
    """Repositorio de productos que falla en la N-ésima escritura de stock."""

    def __init__(self, repo, fail_on):
        self.repo = repo
        self.fail_on = fail_on
        self.calls = 0

    def set_stock(self, product_id, stock):
        self.calls += 1
        if self.calls == self.fail_on:
            raise RepositoryError('products: timeout')
        return self.repo.set_stock(product_id, stock)

    def __getattr__(self, name):
        return getattr(self.repo, name)


def test_checkout_updates_stock_and_logs_sale(container, make_product, actor):
    product = make_product(name='Café', sku='CAF-001', price='3.50', stock=20)
    cart = container.cart_service
    cart.add_item(product['id'])
    cart.add_item(product['id'])

    r = container.checkout_service.checkout(actor)
    assert r['ok'], r
    assert r['totals']['total'] == Decimal('8.12')
    assert r['ticket']['total'] == '8.12'
    assert re.match(r'^T\d{8}-\d{6}$', r['ticket']['ticket_number'])
    # Impresora deshabilitada por defecto
    assert r['ticket_html'] is None

    assert container.product_repo.get_by_id(product['id'])['stock'] == 18
    assert cart.is_empty()

    logs = container.audit_repo.list_by_action(ActionType.VENTA_CREADA.value)
    assert len(logs) == 1
    sale = logs[0]
    assert sale['table_name'] == 'products'
    assert sale['user_id'] == actor.user_id
    assert sale['new_values']['total'] == 8.12
    assert sale['new_values']['subtotal'] == 7.0
    assert sale['new_values']['ticket_number'] == r['ticket']['ticket_number']
    assert sale['new_values']['items'][0]['quantity'] == 2


def test_checkout_returns_refreshed_products(container, make_product, actor):
    product = make_product(stock=5)
    container.cart_service.add_item(product['id'])

    r = container.checkout_service.checkout(actor)
    assert [p['stock'] for p in r['products']] == [4]


def test_checkout_empty_cart(container, actor):
    r = container.checkout_service.checkout(actor)
    assert r['ok'] is False
    assert r['error'] == 'El carrito está vacío'
    assert container.audit_repo.list_by_action(ActionType.VENTA_CREADA.value) == []


def test_checkout_with_printer_renders_ticket(container, make_product, actor):
    container.settings_service.save_settings(
        actor.user_id, {'printer_enabled': True, 'business_name': 'Cafetería Luna'}, actor
    )
    product = make_product(price='10.00', stock=3)
    container.cart_service.add_item(product['id'])

    r = container.checkout_service.checkout(actor)
    assert r['ok']
    html = r['ticket_html']
    assert 'Cafetería Luna' in html
    assert r['ticket']['ticket_number'] in html
    assert '$11.60' in html


def test_checkout_uses_snapshot_stock(container, make_product, actor):
    product = make_product(stock=10)
    container.cart_service.add_item(product['id'])

    # El stock cambia después de agregar; la venta escribe snapshot - cantidad
    container.product_repo.set_stock(product['id'], 4)
    container.checkout_service.checkout(actor)
    assert container.product_repo.get_by_id(product['id'])['stock'] == 9


def test_checkout_failure_keeps_cart_and_partial_writes(container, make_product, actor):
    first = make_product(name='Agua', sku='AGU-001', price='1.00', stock=5)
    second = make_product(name='Jugo', sku='JUG-001', price='2.00', stock=5)
    cart = container.cart_service
    cart.add_item(first['id'])
    cart.add_item(second['id'])

    flaky = FlakyProductRepo(container.product_repo, fail_on=2)
    checkout = CheckoutService(
        cart,
        flaky,
        container.audit_service,
        container.settings_service,
        container.ticket_service,
    )

    r = checkout.checkout(actor)
    assert r['ok'] is False
    assert r['error'] == 'Error al procesar la venta. Intente nuevamente'

    # La primera línea quedó escrita, la segunda no
    assert container.product_repo.get_by_id(first['id'])['stock'] == 4
    assert container.product_repo.get_by_id(second['id'])['stock'] == 5

    assert len(cart.get_items()) == 2
    assert container.audit_repo.list_by_action(ActionType.VENTA_CREADA.value) == []


def test_checkout_product_deleted_after_adding(container, make_product, actor):
    product = make_product(stock=5)
    container.cart_service.add_item(product['id'])
    container.product_repo.delete(product['id'])

    r = container.checkout_service.checkout(actor)
    assert r['ok'] is False
    assert not container.cart_service.is_empty()

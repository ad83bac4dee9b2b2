from decimal import Decimal

from punto_venta.models.entities import ActionType


def test_add_until_stock_reached(container, make_product):
    product = make_product(name='Pan dulce', sku='PAN-001', price='1.00', stock=2)
    cart = container.cart_service

    assert cart.add_item(product['id'])['ok']
    assert cart.add_item(product['id'])['ok']

    r = cart.add_item(product['id'])
    assert r['ok'] is False
    assert 'Stock insuficiente' in r['error']
    assert r['disponible'] == 2

    items = cart.get_items()
    assert len(items) == 1
    assert items[0].quantity == 2


def test_add_product_without_stock_rejected(container, make_product):
    product = make_product(name='Galletas', sku='GAL-001', stock=0)
    r = container.cart_service.add_item(product['id'])
    assert r['ok'] is False
    assert container.cart_service.is_empty()


def test_add_unknown_product(container):
    r = container.cart_service.add_item('no-existe')
    assert r['ok'] is False
    assert r['not_found'] is True


def test_totals_with_tax(container, make_product):
    product = make_product(name='Pastel', sku='PAS-001', price='10.00', stock=5)
    cart = container.cart_service
    cart.add_item(product['id'])
    cart.add_item(product['id'])

    totals = cart.get_totals()
    assert totals['subtotal'] == Decimal('20.00')
    assert totals['tax'] == Decimal('3.20')
    assert totals['total'] == Decimal('23.20')


def test_tax_rounds_half_up(container, make_product):
    product = make_product(name='Chicle', sku='CHI-001', price='0.03', stock=5)
    container.cart_service.add_item(product['id'])
    totals = container.cart_service.get_totals()
    # 0.03 * 0.16 = 0.0048
    assert totals['tax'] == Decimal('0.00')
    assert totals['total'] == Decimal('0.03')


def test_empty_cart_totals_are_zero(container):
    totals = container.cart_service.get_totals()
    assert totals == {'subtotal': Decimal('0.00'), 'tax': Decimal('0.00'), 'total': Decimal('0.00')}


def test_update_quantity_to_zero_removes_line(container, make_product):
    product = make_product(stock=10)
    cart = container.cart_service
    cart.add_item(product['id'])
    cart.update_quantity(product['id'], 2)
    assert cart.get_items()[0].quantity == 3

    r = cart.update_quantity(product['id'], -3)
    assert r['ok']
    assert cart.is_empty()


def test_update_quantity_beyond_stock_rejected(container, make_product):
    product = make_product(stock=3)
    cart = container.cart_service
    cart.add_item(product['id'])

    r = cart.update_quantity(product['id'], 5)
    assert r['ok'] is False
    assert cart.get_items()[0].quantity == 1


def test_stock_snapshot_is_not_refreshed(container, make_product):
    product = make_product(stock=2)
    cart = container.cart_service
    cart.add_item(product['id'])

    # Otro proceso repone stock; la línea sigue limitada a lo capturado
    container.product_repo.set_stock(product['id'], 50)
    cart.add_item(product['id'])
    r = cart.add_item(product['id'])
    assert r['ok'] is False
    assert cart.get_items()[0].stock == 2


def test_remove_item(container, make_product):
    a = make_product(name='Café', sku='CAF-001')
    b = make_product(name='Té', sku='TE-001')
    cart = container.cart_service
    cart.add_item(a['id'])
    cart.add_item(b['id'])

    cart.remove_item(a['id'])
    assert [i.id for i in cart.get_items()] == [b['id']]


def test_clear_cart_requires_confirmation(container, make_product):
    product = make_product()
    cart = container.cart_service
    cart.add_item(product['id'])

    r = cart.clear_cart()
    assert r['ok'] is False
    assert r['requires_confirmation'] is True
    assert not cart.is_empty()

    assert cart.clear_cart(confirmed=True)['ok']
    assert cart.is_empty()


def test_cancel_sale_logs_audit(container, make_product, actor):
    product = make_product(price='2.00')
    cart = container.cart_service
    cart.add_item(product['id'])

    r = cart.cancel_sale(confirmed=False, actor=actor)
    assert r['requires_confirmation'] is True
    assert not cart.is_empty()

    r = cart.cancel_sale(confirmed=True, actor=actor)
    assert r['ok']
    assert cart.is_empty()

    logs = container.audit_repo.list_by_action(ActionType.VENTA_CANCELADA.value)
    assert len(logs) == 1
    assert logs[0]['user_id'] == actor.user_id
    assert logs[0]['old_values']['total'] == 2.32


def test_cancel_empty_cart(container):
    r = container.cart_service.cancel_sale(confirmed=True)
    assert r['ok'] is False
    assert r['error'] == 'El carrito está vacío'


def test_search_exact_sku_case_insensitive(container, make_product):
    make_product(name='Café Americano', sku='CAF-001')
    make_product(name='Café Latte', sku='CAF-002')

    r = container.cart_service.search_and_add('caf-002')
    assert r['ok']
    assert container.cart_service.get_items()[0].sku == 'CAF-002'


def test_search_single_partial_match(container, make_product):
    make_product(name='Café Americano', sku='CAF-001')
    make_product(name='Croissant', sku='PAN-002')

    r = container.cart_service.search_and_add('croiss')
    assert r['ok']
    assert container.cart_service.get_items()[0].name == 'Croissant'


def test_search_multiple_partial_matches_adds_nothing(container, make_product):
    make_product(name='Café Americano', sku='CAF-001')
    make_product(name='Café Latte', sku='CAF-002')

    r = container.cart_service.search_and_add('café')
    assert r['ok']
    assert len(r['coincidencias']) == 2
    assert container.cart_service.is_empty()


def test_search_without_match(container, make_product):
    make_product()
    r = container.cart_service.search_and_add('zzz')
    assert r['ok'] is False
    assert container.cart_service.is_empty()


def test_search_empty_term(container):
    assert container.cart_service.search_and_add('   ')['ok'] is False

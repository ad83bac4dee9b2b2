import io

from punto_venta.main import create_app
from punto_venta.tests.conftest import CLIENT_EMAIL, SELLER_EMAIL


def create_product(client, token, **overrides):
    data = {'name': 'Café', 'sku': 'CAF-001', 'price': '3.50', 'stock': 20, 'category': 'Bebidas'}
    data.update(overrides)
    r = client.post('/api/productos', json=dict(data, csrf_token=token))
    assert r.status_code == 200, r.get_json()
    return r.get_json()['product']


def test_session_and_login(client, login):
    r = client.get('/api/sesion')
    assert r.get_json()['autenticado'] is False

    login()
    body = client.get('/api/sesion').get_json()
    assert body['autenticado'] is True
    assert body['usuario']['role'] == 'administrador'


def test_login_wrong_password(client):
    token = client.get('/api/sesion').get_json()['csrf_token']
    r = client.post('/login', json={'email': 'admin@test.local', 'password': 'mal', 'csrf_token': token})
    assert r.status_code == 401


def test_login_requires_csrf(client):
    client.get('/api/sesion')
    r = client.post('/login', json={'email': 'admin@test.local', 'password': 'secreto123'})
    assert r.status_code == 403
    assert r.get_json()['error'] == 'CSRF token inválido'


def test_api_requires_login(client):
    assert client.get('/api/productos').status_code == 401


def test_post_without_csrf_rejected(client, login):
    login()
    r = client.post('/api/productos', json={'name': 'A', 'sku': 'B', 'price': 1})
    assert r.status_code == 403


def test_csrf_accepted_from_header(client, login):
    token = login()
    r = client.post('/api/clientes', json={'name': 'Ana'}, headers={'X-CSRF-Token': token})
    assert r.status_code == 200


def test_cliente_role_forbidden(client, login):
    login(CLIENT_EMAIL)
    assert client.get('/api/productos').status_code == 403
    assert client.get('/api/carrito').status_code == 403


def test_settings_and_audit_admin_only(client, login):
    login(SELLER_EMAIL)
    r = client.get('/api/productos')
    assert r.status_code == 200
    assert 'Bebidas' in r.get_json()['categorias']
    assert client.get('/api/configuracion').status_code == 403
    assert client.get('/api/auditoria').status_code == 403


def test_save_settings(client, login):
    token = login()
    r = client.post('/api/configuracion', json={'business_name': 'Tienda Centro', 'csrf_token': token})
    assert r.status_code == 200
    settings = client.get('/api/configuracion').get_json()['settings']
    assert settings['business_name'] == 'Tienda Centro'


def test_sale_flow_and_ticket_download(client, login):
    token = login()
    product = create_product(client, token)

    r = client.post('/api/carrito/agregar', json={'producto_id': product['id'], 'csrf_token': token})
    assert r.status_code == 200
    r = client.post('/api/carrito/cantidad', json={'producto_id': product['id'], 'delta': 1, 'csrf_token': token})
    assert r.get_json()['carrito']['total_items'] == 2

    r = client.post('/api/carrito/cobrar', json={'csrf_token': token})
    assert r.status_code == 200
    body = r.get_json()
    assert body['ticket']['total'] == '8.12'
    assert client.get('/api/carrito').get_json()['carrito']['items'] == []

    numero = body['ticket']['ticket_number']
    r = client.get(f'/api/tickets/{numero}.txt')
    assert r.status_code == 200
    assert f'ticket-{numero}.txt' in r.headers['Content-Disposition']
    assert 'TOTAL:               $8.12' in r.get_data(as_text=True)

    assert client.get('/api/tickets/T00000000-000000.txt').status_code == 404

    logs = client.get('/api/auditoria?q=venta_creada').get_json()['logs']
    assert len(logs) == 1
    assert logs[0]['user_display'] == 'Ana Admin'
    assert logs[0]['ip_address'] == '127.0.0.1'


def test_checkout_empty_cart(client, login):
    token = login()
    r = client.post('/api/carrito/cobrar', json={'csrf_token': token})
    assert r.status_code == 400


def test_clear_cart_needs_confirmation(client, login):
    token = login()
    product = create_product(client, token)
    client.post('/api/carrito/agregar', json={'producto_id': product['id'], 'csrf_token': token})

    r = client.post('/api/carrito/limpiar', json={'csrf_token': token})
    assert r.get_json()['requires_confirmation'] is True
    r = client.post('/api/carrito/limpiar', json={'confirmar': True, 'csrf_token': token})
    assert r.get_json()['carrito']['items'] == []


def test_search_and_add(client, login):
    token = login()
    create_product(client, token)
    r = client.post('/api/carrito/buscar', json={'termino': 'caf-001', 'csrf_token': token})
    assert r.status_code == 200
    assert r.get_json()['carrito']['items_count'] == 1


def test_csv_upload(client, login):
    token = login()
    data = {
        'archivo': (io.BytesIO('name,sku,price,stock\nPan,PAN-001,0.50,30\n'.encode('utf-8')), 'productos.csv'),
        'csrf_token': token,
    }
    r = client.post('/api/productos/importar', data=data, content_type='multipart/form-data')
    assert r.status_code == 200, r.get_json()
    assert r.get_json()['importados'] == 1


def test_csv_upload_rejects_other_files(client, login):
    token = login()
    data = {'archivo': (io.BytesIO(b'x'), 'productos.xlsx'), 'csrf_token': token}
    r = client.post('/api/productos/importar', data=data, content_type='multipart/form-data')
    assert r.status_code == 400


def test_oversized_price_is_a_form_error(client, login):
    token = login()
    r = client.post('/api/productos', json={
        'name': 'Caja', 'sku': 'CAJ-001', 'price': '1e30', 'stock': 1, 'csrf_token': token,
    })
    assert r.status_code == 400
    assert r.get_json()['field'] == 'price'


def test_product_not_found(client, login):
    token = login()
    r = client.delete('/api/productos/no-existe', json={'csrf_token': token})
    assert r.status_code == 404


def test_inventory_adjustment(client, login):
    token = login()
    product = create_product(client, token, stock=5)

    r = client.post('/api/inventario/ajuste', json={'producto_id': product['id'], 'delta': -2, 'csrf_token': token})
    assert r.get_json()['preview']['new_stock'] == 3

    r = client.post('/api/inventario/ajuste/confirmar', json={
        'producto_id': product['id'], 'delta': -2, 'notas': 'Merma', 'csrf_token': token,
    })
    assert r.status_code == 200
    overview = client.get('/api/inventario').get_json()
    assert overview['stats']['low_stock_count'] == 1
    assert overview['movements'][0]['notes'] == 'Merma'


def test_connection_status(client, login):
    token = login(SELLER_EMAIL)
    assert client.get('/api/estado').get_json()['is_online'] is True
    r = client.post('/api/estado', json={'online': False, 'csrf_token': token})
    assert r.get_json()['is_online'] is False


def test_logout(client, login):
    token = login()
    assert client.post('/logout', json={'csrf_token': token}).status_code == 200
    assert client.get('/api/productos').status_code == 401


def test_security_headers(client):
    r = client.get('/api/sesion')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'
    assert 'Strict-Transport-Security' not in r.headers


def test_second_app_does_not_close_first_app_database(app, client, login, tmp_path):
    token = login()
    create_product(client, token)

    other = create_app({
        'TESTING': True,
        'DATABASE_URL': 'sqlite:///:memory:',
        'PRODUCTION_MODE': True,
        'ENABLE_PROFILING': False,
        'LOGS_DIR': str(tmp_path / 'otros-logs'),
        'SECRET_KEY': 'otra-clave',
    })
    try:
        assert other.extensions['punto_venta'] is not app.extensions['punto_venta']
        r = client.get('/api/productos')
        assert r.status_code == 200
        assert [p['sku'] for p in r.get_json()['products']] == ['CAF-001']
    finally:
        other.extensions['punto_venta'].reset()

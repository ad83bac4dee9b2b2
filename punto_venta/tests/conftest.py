import pytest

from punto_venta import performance_logger
from punto_venta.app_container import AppContainer
from punto_venta.main import create_app
from punto_venta.models.entities import Actor, AppRole
from punto_venta.services import MemoryCartStore

ADMIN_EMAIL = 'admin@test.local'
SELLER_EMAIL = 'vendedor@test.local'
CLIENT_EMAIL = 'cliente@test.local'
PASSWORD = 'secreto123'


@pytest.fixture(autouse=True)
def profiling_off(tmp_path):
    performance_logger.configure(enabled=False, logs_dir=str(tmp_path / 'logs'))
    yield
    performance_logger.reset_stats()


@pytest.fixture
def container():
    """Contenedor con base en memoria y carrito en memoria (sin Flask)."""
    c = AppContainer({
        'DATABASE_URL': 'sqlite:///:memory:',
        'CART_STORE': MemoryCartStore(),
    })
    c.init_db()
    yield c
    c.reset()


@pytest.fixture
def admin(container):
    result = container.auth_service.create_user(ADMIN_EMAIL, PASSWORD, 'Ana Admin', AppRole.ADMINISTRADOR.value)
    return result['user']


@pytest.fixture
def actor(admin):
    return Actor(user_id=admin['id'], user_agent='pytest', ip_address='127.0.0.1')


@pytest.fixture
def make_product(container):
    def _make(name='Café Americano', sku='CAF-001', price='3.50', stock=20, category='Bebidas'):
        result = container.catalog_service.create_product({
            'name': name,
            'sku': sku,
            'price': price,
            'stock': stock,
            'category': category,
        })
        assert result['ok'], result
        return result['product']
    return _make


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'DATABASE_URL': 'sqlite:///:memory:',
        'PRODUCTION_MODE': True,
        'ENABLE_PROFILING': False,
        'LOGS_DIR': str(tmp_path / 'logs'),
        'SECRET_KEY': 'test-secret',
    })
    auth = app.extensions['punto_venta'].auth_service
    auth.create_user(ADMIN_EMAIL, PASSWORD, 'Ana Admin', AppRole.ADMINISTRADOR.value)
    auth.create_user(SELLER_EMAIL, PASSWORD, 'Victor Vendedor', AppRole.VENDEDOR.value)
    auth.create_user(CLIENT_EMAIL, PASSWORD, 'Carla Cliente', AppRole.CLIENTE.value)
    yield app
    app.extensions['punto_venta'].reset()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def login(client):
    def _login(email=ADMIN_EMAIL, password=PASSWORD):
        """Inicia sesión y devuelve el token CSRF para los POST siguientes."""
        token = client.get('/api/sesion').get_json()['csrf_token']
        r = client.post('/login', json={'email': email, 'password': password, 'csrf_token': token})
        assert r.status_code == 200, r.get_json()
        return r.get_json()['csrf_token']
    return _login

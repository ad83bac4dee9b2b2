import pytest

from punto_venta.models.entities import ActionType, Actor
from punto_venta.repositories.base import RepositoryError
from punto_venta.services import AuditService


class BrokenAuditRepo:
    def insert(self, data):
        raise RepositoryError('audit_logs: disk full')

    def list_recent(self, limit=100):
        raise RepositoryError('audit_logs: disk full')


def test_log_action_records_actor(container, admin):
    actor = Actor(user_id=admin['id'], user_agent='Mozilla/5.0', ip_address='10.0.0.7')
    entry = container.audit_service.log_action(
        ActionType.AJUSTE_INVENTARIO, 'products', actor, record_id='p1',
        new_values={'stock': 3}, description='Ajuste manual',
    )
    assert entry['action_type'] == 'ajuste_inventario'
    assert entry['user_agent'] == 'Mozilla/5.0'
    assert entry['ip_address'] == '10.0.0.7'


def test_failed_write_does_not_raise():
    service = AuditService(BrokenAuditRepo())
    assert service.log_action(ActionType.VENTA_CREADA, 'products') is None


def test_failed_write_does_not_abort_operation(container, make_product):
    product = make_product(stock=5)
    container.cart_service.audit_service = AuditService(BrokenAuditRepo())
    container.cart_service.add_item(product['id'])
    r = container.cart_service.cancel_sale(confirmed=True)
    assert r['ok']


def test_recent_logs_join_profile_and_label(container, admin, actor):
    container.audit_service.log_action(ActionType.VENTA_CANCELADA, 'products', description='Sin usuario')
    container.audit_service.log_action(ActionType.VENTA_CREADA, 'products', actor, description='Con usuario')

    r = container.audit_service.get_recent_logs()
    assert r['ok']
    by_description = {log['description']: log for log in r['logs']}

    system = by_description['Sin usuario']
    assert system['user_display'] == 'Sistema'
    assert system['action_label'] == 'Venta Cancelada'

    with_user = by_description['Con usuario']
    assert with_user['email'] == admin['email']
    assert with_user['user_display'] == 'Ana Admin'


def test_recent_logs_search(container, actor):
    container.audit_service.log_action(ActionType.PRODUCTO_CREADO, 'products', actor, description='Producto creado: Café')
    container.audit_service.log_action(ActionType.CONFIGURACION_ACTUALIZADA, 'settings', actor, description='Config')

    assert container.audit_service.get_recent_logs('café')['total'] == 1
    assert container.audit_service.get_recent_logs('SETTINGS')['total'] == 1
    # Coincide con el nombre del perfil
    assert container.audit_service.get_recent_logs('ana admin')['total'] == 2


def test_recent_logs_respect_view_limit(container):
    service = AuditService(container.audit_repo, view_limit=3)
    for i in range(5):
        service.log_action(ActionType.VENTA_CREADA, 'products', description=f'Venta {i}')
    assert service.get_recent_logs()['total'] == 3


def test_recent_logs_repository_failure():
    r = AuditService(BrokenAuditRepo()).get_recent_logs()
    assert r['ok'] is False


def test_audit_entries_cannot_be_changed_or_removed(container, actor):
    entry = container.audit_service.log_action(ActionType.VENTA_CREADA, 'products', actor, description='Venta')

    with pytest.raises(RepositoryError):
        container.audit_repo.update(entry['id'], {'description': 'Editada'})
    with pytest.raises(RepositoryError):
        container.audit_repo.delete(entry['id'])

    assert container.audit_repo.get_by_id(entry['id'])['description'] == 'Venta'

from punto_venta.models.entities import ActionType, BusinessSettings


def test_defaults_when_no_row(container, admin):
    settings = container.settings_service.get_settings(admin['id'])
    assert settings == BusinessSettings()
    assert settings.business_name == 'Mi Negocio'
    assert settings.payment_cash is True
    assert settings.printer_enabled is False


def test_first_save_inserts_then_updates(container, admin, actor):
    service = container.settings_service
    r = service.save_settings(admin['id'], {'business_name': 'Cafetería Luna', 'rfc': 'XAXX010101000'}, actor)
    assert r['ok'], r
    assert len(container.settings_repo.find_all_by('user_id', admin['id'])) == 1

    r = service.save_settings(admin['id'], {'printer_enabled': 'on'}, actor)
    assert r['ok']
    rows = container.settings_repo.find_all_by('user_id', admin['id'])
    assert len(rows) == 1
    # Los campos no enviados conservan su valor
    assert rows[0]['business_name'] == 'Cafetería Luna'
    assert rows[0]['printer_enabled'] is True

    logs = container.audit_repo.list_by_action(ActionType.CONFIGURACION_ACTUALIZADA.value)
    assert len(logs) == 2


def test_unknown_keys_ignored(container, admin):
    r = container.settings_service.save_settings(admin['id'], {'tax_rate': '0.5', 'phone': '555'})
    assert r['ok']
    assert 'tax_rate' not in r['settings']
    assert r['settings']['phone'] == '555'


def test_invalid_email_rejected(container, admin):
    r = container.settings_service.save_settings(admin['id'], {'email': 'no-es-email'})
    assert r['ok'] is False
    assert container.settings_repo.get_by_user(admin['id']) is None


def test_settings_are_per_user(container, admin):
    other = container.auth_service.create_user('otro@test.local', 'secreto123', 'Otro', 'vendedor')['user']
    container.settings_service.save_settings(admin['id'], {'business_name': 'Tienda A'})
    assert container.settings_service.get_settings(other['id']).business_name == 'Mi Negocio'


def test_save_requires_user(container):
    assert container.settings_service.save_settings(None, {'phone': '1'})['ok'] is False

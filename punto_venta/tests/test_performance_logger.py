import os

from punto_venta import performance_logger
from punto_venta.main import create_app


def test_profile_function_collects_stats(tmp_path):
    performance_logger.configure(enabled=True, logs_dir=str(tmp_path))

    @performance_logger.profile_function(name='Sumar')
    def sumar(a, b):
        return a + b

    assert sumar(2, 3) == 5
    assert sumar(1, 1) == 2

    stats = performance_logger.get_function_stats()
    assert stats['Sumar']['calls'] == 2

    performance_logger.write_function_stats_report()
    report = (tmp_path / 'slow_functions.log').read_text(encoding='utf-8')
    assert 'FUNCIÓN: Sumar' in report


def test_disabled_profiling_records_nothing(tmp_path):
    performance_logger.configure(enabled=False, logs_dir=str(tmp_path))

    @performance_logger.profile_function
    def nada():
        return None

    nada()
    assert 'nada' not in performance_logger.get_function_stats()
    assert os.listdir(tmp_path) == []


def test_route_timing_logged_with_readable_name(tmp_path):
    logs_dir = tmp_path / 'logs'
    app = create_app({
        'TESTING': True,
        'DATABASE_URL': 'sqlite:///:memory:',
        'PRODUCTION_MODE': True,
        'ENABLE_PROFILING': True,
        'LOGS_DIR': str(logs_dir),
    })
    with app.test_client() as client:
        client.get('/api/sesion')
    app.extensions['punto_venta'].reset()

    content = (logs_dir / 'performance.log').read_text(encoding='utf-8')
    assert 'Acción: Ver sesión' in content
    assert 'Usuario: anónimo' in content

# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la experiencia del usuario.
# Guarda logs legibles en el directorio de logs para análisis humano.
#
# ACTIVAR/DESACTIVAR: Variable de entorno POS_ENABLE_PROFILING
# (o clave ENABLE_PROFILING de la configuración de Flask)
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps

from punto_venta import config

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300   # Advertencia si supera 300ms
THRESHOLD_CRITICAL = 700  # Crítico si supera 700ms

# Estado actual (se puede cambiar con configure() al crear la app)
_state = {
    'enabled': config.ENABLE_PROFILING,
    'logs_dir': config.LOGS_DIR,
}

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    # Sesión
    'POST /login': 'Iniciar sesión',
    'POST /logout': 'Cerrar sesión',
    'GET /api/sesion': 'Ver sesión',

    # Productos
    'GET /api/productos': 'Ver productos',
    'POST /api/productos': 'Crear producto',
    'PUT /api/productos/<product_id>': 'Editar producto',
    'DELETE /api/productos/<product_id>': 'Eliminar producto',
    'POST /api/productos/importar': 'Importar productos CSV',

    # Punto de venta
    'GET /api/carrito': 'Ver carrito',
    'POST /api/carrito/agregar': 'Agregar al carrito',
    'POST /api/carrito/buscar': 'Buscar y agregar al carrito',
    'POST /api/carrito/cantidad': 'Cambiar cantidad',
    'POST /api/carrito/eliminar': 'Eliminar del carrito',
    'POST /api/carrito/limpiar': 'Vaciar carrito',
    'POST /api/carrito/cancelar': 'Cancelar venta',
    'POST /api/carrito/cobrar': 'Cobrar venta',
    'GET /api/tickets/<numero>.txt': 'Descargar ticket',

    # Inventario
    'GET /api/inventario': 'Ver inventario',
    'POST /api/inventario/ajuste': 'Preparar ajuste de stock',
    'POST /api/inventario/ajuste/confirmar': 'Confirmar ajuste de stock',

    # Clientes
    'GET /api/clientes': 'Ver clientes',
    'POST /api/clientes': 'Crear cliente',
    'PUT /api/clientes/<customer_id>': 'Editar cliente',
    'DELETE /api/clientes/<customer_id>': 'Eliminar cliente',

    # Configuración y auditoría
    'GET /api/configuracion': 'Ver configuración',
    'POST /api/configuracion': 'Guardar configuración',
    'GET /api/auditoria': 'Ver registro de actividad',
}


def configure(enabled=None, logs_dir=None):
    """
    Cambia la configuración del profiling en tiempo de ejecución.

    Args:
        enabled: Activar o desactivar (None = sin cambios)
        logs_dir: Directorio de logs (None = sin cambios)
    """
    if enabled is not None:
        _state['enabled'] = bool(enabled)
    if logs_dir:
        _state['logs_dir'] = logs_dir


def is_enabled():
    return _state['enabled']


def _log_path(filename):
    return os.path.join(_state['logs_dir'], filename)


def performance_log_path():
    return _log_path('performance.log')


def slow_routes_log_path():
    return _log_path('slow_routes.log')


def slow_functions_log_path():
    return _log_path('slow_functions.log')


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES DE LOGGING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    """Obtiene timestamp legible"""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _write_log(filepath, content):
    """Escribe contenido a un archivo de log (thread-safe)"""
    try:
        with _write_lock:
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
            with open(filepath, 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        # Un fallo de escritura del log no debe afectar la petición
        logger.warning("Could not write profiling log %s: %s", filepath, e)


def _get_route_name(method, path, rule=None):
    """
    Obtiene nombre legible para una ruta.
    Intenta hacer match con ROUTE_NAMES, si no, devuelve la ruta raw.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    # La regla de Flask conserva los parámetros (<product_id>)
    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    return key


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS (Middleware Flask)
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    """
    Registra el rendimiento de una ruta en performance.log

    Args:
        method: GET, POST, etc.
        path: Ruta solicitada (/api/carrito/agregar)
        rule: Regla de Flask (/api/productos/<product_id>)
        time_ms: Tiempo en milisegundos
        user: Usuario que hizo la petición (opcional)
    """
    if not is_enabled():
        return

    action_name = _get_route_name(method, path, rule)
    user_str = user or 'anónimo'

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {action_name}
Usuario: {user_str}
Ruta: {method} {path}
Tiempo: {time_ms:.0f} ms
"""

    _write_log(performance_log_path(), log_entry)


def log_slow_route(method, path, rule, time_ms, user=None, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>300ms) o 'CRITICAL' (>700ms)
    """
    if not is_enabled():
        return

    action_name = _get_route_name(method, path, rule)
    user_str = user or 'anónimo'
    severity = 'LENTA' if level == 'WARNING' else 'MUY LENTA'
    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {action_name}
Usuario: {user_str}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {threshold} ms)
────────────────────────────────────────
"""

    _write_log(slow_routes_log_path(), log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Inicializa el sistema de profiling en una app Flask.
    Registra hooks before_request y after_request.

    Toma ENABLE_PROFILING y LOGS_DIR de app.config.
    """
    configure(
        enabled=app.config.get('ENABLE_PROFILING', _state['enabled']),
        logs_dir=app.config.get('LOGS_DIR'),
    )
    if not is_enabled():
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms

        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path
        user = session.get('email')

        if path.startswith('/static'):
            return response

        log_route_performance(method, path, rule, elapsed, user)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, user, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, user, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Cobrar venta")
        def checkout():
            ...

    Registra:
        - Cantidad de llamadas
        - Tiempo promedio
        - Tiempo máximo

    El estado activado/desactivado se consulta en cada llamada, de modo
    que configure() afecta también a funciones ya decoradas.
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not is_enabled():
                return fn(*args, **kwargs)

            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    """Registra una llamada lenta a una función"""
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'

    log_entry = f"""
[{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
"""

    _write_log(slow_functions_log_path(), log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 4️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def write_function_stats_report():
    """
    Escribe un reporte legible de estadísticas de funciones en slow_functions.log
    """
    if not is_enabled():
        return

    stats = get_function_stats()
    if not stats:
        return

    sorted_stats = sorted(stats.items(), key=lambda x: x[1]['avg_time'], reverse=True)

    report = f"""
══════════════════════════════════════════════════════════════════════════════
  REPORTE DE RENDIMIENTO DE FUNCIONES
  Generado: {_get_timestamp()}
══════════════════════════════════════════════════════════════════════════════

"""

    for func_name, data in sorted_stats:
        status = ''
        if data['avg_time'] >= THRESHOLD_CRITICAL:
            status = ' CRÍTICO'
        elif data['avg_time'] >= THRESHOLD_WARNING:
            status = ' LENTO'
        elif data['max_time'] >= THRESHOLD_CRITICAL:
            status = ' PICOS ALTOS'

        report += f"""┌──────────────────────────────────────────────────────────────────────────────
│ FUNCIÓN: {func_name}{status}
├──────────────────────────────────────────────────────────────────────────────
│ Llamadas totales: {data['calls']}
│ Tiempo promedio:  {data['avg_time']:.0f} ms
│ Tiempo máximo:    {data['max_time']:.0f} ms
└──────────────────────────────────────────────────────────────────────────────

"""

    _write_log(slow_functions_log_path(), report)


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


# ═══════════════════════════════════════════════════════════════════════════
# EXPORTAR API PÚBLICA
# ═══════════════════════════════════════════════════════════════════════════

__all__ = [
    'configure',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'write_function_stats_report',
    'reset_stats',
]

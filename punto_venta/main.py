# ==============================================================================
# APLICACIÓN FLASK - API JSON DEL PUNTO DE VENTA
# ==============================================================================
# Las rutas solo orquestan: request → servicio → respuesta JSON.
# Toda la lógica de negocio vive en services/.
#
# Respuestas:
#   {"ok": true, ...}               → 200
#   {"ok": false, "error": "..."}   → 400 (404 si el recurso no existe)
# ==============================================================================

import logging
from functools import wraps
from typing import Any, Dict, Optional
import uuid

from flask import Flask, Response, current_app, request, session

from punto_venta import config
from punto_venta.app_container import AppContainer
from punto_venta.models.entities import PRODUCT_CATEGORIES, Actor, AppRole
from punto_venta.performance_logger import init_profiling
from punto_venta.repositories.base import RepositoryError

logger = logging.getLogger(__name__)

# Roles con acceso a cada grupo de rutas
STAFF_ROLES = (AppRole.ADMINISTRADOR.value, AppRole.VENDEDOR.value)
ADMIN_ROLES = (AppRole.ADMINISTRADOR.value,)

# Usuarios de desarrollo (solo si PRODUCTION_MODE es False)
DEV_USERS = (
    ('admin@puntoventa.local', 'admin123', 'Administrador', AppRole.ADMINISTRADOR.value),
    ('vendedor@puntoventa.local', 'vendedor123', 'Vendedor', AppRole.VENDEDOR.value),
)


# ═══════════════════════════════════════════════════════════════════════════════
# UTILIDADES DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════════

def container() -> AppContainer:
    """Contenedor de la app actual."""
    return current_app.extensions['punto_venta']


def current_actor() -> Actor:
    """Usuario de la sesión y datos de la petición (para auditoría)."""
    return Actor(
        user_id=session.get('user_id'),
        user_agent=request.headers.get('User-Agent'),
        ip_address=request.remote_addr,
    )


def request_data() -> Dict[str, Any]:
    """Cuerpo JSON o formulario de la petición."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def respond(result: Dict[str, Any]):
    """Traduce un resultado de servicio a respuesta HTTP."""
    if result.get('ok'):
        return result
    status = 404 if result.pop('not_found', False) else 400
    return result, status


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'on', 'si', 'sí', 'yes')
    return bool(value)


# ═══════════════════════════════════════════════════════════════════════════════
# SEGURIDAD: SESIÓN, ROLES Y CSRF
# ═══════════════════════════════════════════════════════════════════════════════

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'user_id' not in session:
            return {"ok": False, "error": "Debes iniciar sesión."}, 401
        return f(*args, **kwargs)
    return wrapper


def role_required(*roles):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if session.get('role') not in roles:
                return {"ok": False, "error": "Permiso denegado."}, 403
            return f(*args, **kwargs)
        return wrapper
    return deco


def generate_csrf_token() -> str:
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in ('POST', 'PUT', 'DELETE'):
            token = session.get('csrf_token')
            form_token = (
                request.form.get('csrf_token') or
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')
            )
            if not form_token and request.is_json:
                json_data = request.get_json(silent=True) or {}
                if isinstance(json_data, dict):
                    form_token = json_data.get('csrf_token')

            if not token or not form_token or token != form_token:
                return {"ok": False, "error": "CSRF token inválido"}, 403
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

def _configure_logging(app: Flask) -> None:
    level = logging.WARNING if app.config.get('PRODUCTION_MODE') else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )


def seed_dev_users(app_container: AppContainer) -> None:
    """Crea los usuarios de desarrollo que falten."""
    auth = app_container.auth_service
    for email, password, full_name, role in DEV_USERS:
        if app_container.profile_repo.get_by_email(email):
            continue
        result = auth.create_user(email, password, full_name, role)
        if result.get('ok'):
            logger.info("Development user created: %s (%s)", email, role)


def create_app(config_overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        config_overrides: Valores que reemplazan la configuración del entorno
            (los tests pasan DATABASE_URL en memoria, por ejemplo)
    """
    app = Flask(__name__)
    app.config.update(config.as_flask_config())
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app)

    if app.config.get('PRODUCTION_MODE') and app.config.get('SECRET_KEY') == config.SECRET_KEY and config.SECRET_KEY_IS_DEFAULT:
        logger.warning("PRODUCTION_MODE active without POS_SECRET_KEY; define it for secure sessions")

    # Contenedor de dependencias (uno por app)
    app_container = AppContainer(app.config)
    app_container.init_db()
    app.extensions['punto_venta'] = app_container

    if not app.config.get('PRODUCTION_MODE'):
        seed_dev_users(app_container)

    # Profiling de rutas (logs en LOGS_DIR)
    init_profiling(app)

    register_routes(app)
    register_error_handlers(app)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
        # HSTS solo con HTTPS real
        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RepositoryError)
    def handle_repository_error(e):
        logger.error("Unhandled repository error on %s %s: %s", request.method, request.path, e)
        return {"ok": False, "error": "Error de comunicación con la base de datos"}, 500

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"ok": False, "error": "Recurso no encontrado"}, 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return {"ok": False, "error": "Método no permitido"}, 405

    @app.errorhandler(413)
    def handle_too_large(e):
        return {"ok": False, "error": "El archivo es demasiado grande"}, 413


# ═══════════════════════════════════════════════════════════════════════════════
# RUTAS
# ═══════════════════════════════════════════════════════════════════════════════

def register_routes(app: Flask) -> None:

    # ─────────────────────────────────────────────────────────────────────────
    # SESIÓN
    # ─────────────────────────────────────────────────────────────────────────

    @app.route('/api/sesion', methods=['GET'])
    def api_sesion():
        """Estado de la sesión y token CSRF para las peticiones siguientes."""
        user = None
        if 'user_id' in session:
            user = {
                'id': session['user_id'],
                'email': session.get('email'),
                'full_name': session.get('full_name'),
                'role': session.get('role'),
            }
        return {
            'ok': True,
            'autenticado': user is not None,
            'usuario': user,
            'csrf_token': generate_csrf_token(),
            'online': container().connection_status.is_online,
        }

    @app.route('/login', methods=['POST'])
    @verify_csrf
    def login():
        data = request_data()
        email = (data.get('email') or '').strip()
        password = data.get('password') or ''
        if not email or not password:
            return {"ok": False, "error": "Email y contraseña requeridos."}, 400

        user = container().auth_service.authenticate(email, password)
        if not user:
            return {"ok": False, "error": "Email o contraseña incorrectos."}, 401

        session.clear()
        session.permanent = True
        session['user_id'] = user['id']
        session['email'] = user['email']
        session['full_name'] = user.get('full_name')
        session['role'] = user.get('role')
        token = generate_csrf_token()
        logger.info("User logged in: %s", user['email'])
        return {
            'ok': True,
            'mensaje': f"Bienvenido, {user.get('full_name') or user['email']}.",
            'usuario': user,
            'csrf_token': token,
        }

    @app.route('/logout', methods=['POST'])
    @login_required
    @verify_csrf
    def logout():
        session.clear()
        return {'ok': True, 'mensaje': 'Sesión cerrada.'}

    # ─────────────────────────────────────────────────────────────────────────
    # PRODUCTOS
    # ─────────────────────────────────────────────────────────────────────────

    @app.route('/api/productos', methods=['GET'])
    @login_required
    @role_required(*STAFF_ROLES)
    def api_productos():
        products = container().catalog_service.search_products(request.args.get('q', ''))
        return {'ok': True, 'products': products, 'categorias': list(PRODUCT_CATEGORIES)}

    @app.route('/api/productos', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_productos_crear():
        return respond(container().catalog_service.create_product(request_data(), current_actor()))

    @app.route('/api/productos/<product_id>', methods=['PUT'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_productos_editar(product_id):
        return respond(container().catalog_service.update_product(product_id, request_data(), current_actor()))

    @app.route('/api/productos/<product_id>', methods=['DELETE'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_productos_eliminar(product_id):
        return respond(container().catalog_service.delete_product(product_id, current_actor()))

    @app.route('/api/productos/importar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_productos_importar():
        """Importa productos desde un archivo CSV (campo 'archivo') o texto JSON ('csv')."""
        upload = request.files.get('archivo')
        if upload is not None:
            if not (upload.filename or '').lower().endswith('.csv'):
                return {"ok": False, "error": "Por favor selecciona un archivo CSV"}, 400
            text = upload.read().decode('utf-8-sig', errors='replace')
        else:
            text = request_data().get('csv') or ''
        return respond(container().catalog_service.import_csv(text, current_actor()))

    # ─────────────────────────────────────────────────────────────────────────
    # PUNTO DE VENTA (CARRITO)
    # ─────────────────────────────────────────────────────────────────────────

    @app.route('/api/carrito', methods=['GET'])
    @login_required
    @role_required(*STAFF_ROLES)
    def api_carrito():
        return {'ok': True, 'carrito': container().cart_service.get_cart()}

    @app.route('/api/carrito/agregar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_carrito_agregar():
        data = request_data()
        return respond(container().cart_service.add_item(data.get('producto_id')))

    @app.route('/api/carrito/buscar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_carrito_buscar():
        data = request_data()
        return respond(container().cart_service.search_and_add(data.get('termino', '')))

    @app.route('/api/carrito/cantidad', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_carrito_cantidad():
        data = request_data()
        return respond(container().cart_service.update_quantity(data.get('producto_id'), data.get('delta')))

    @app.route('/api/carrito/eliminar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_carrito_eliminar():
        data = request_data()
        return respond(container().cart_service.remove_item(data.get('producto_id')))

    @app.route('/api/carrito/limpiar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_carrito_limpiar():
        data = request_data()
        return respond(container().cart_service.clear_cart(confirmed=_as_bool(data.get('confirmar'))))

    @app.route('/api/carrito/cancelar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_carrito_cancelar():
        data = request_data()
        return respond(container().cart_service.cancel_sale(
            confirmed=_as_bool(data.get('confirmar')),
            actor=current_actor(),
        ))

    @app.route('/api/carrito/cobrar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_carrito_cobrar():
        result = container().checkout_service.checkout(current_actor())
        if result.get('ok'):
            # Último ticket de la sesión, para la descarga en texto
            session['ultimo_ticket'] = result['ticket']
        return respond(result)

    @app.route('/api/tickets/<numero>.txt', methods=['GET'])
    @login_required
    @role_required(*STAFF_ROLES)
    def api_ticket_texto(numero):
        ticket = session.get('ultimo_ticket')
        if not ticket or ticket.get('ticket_number') != numero:
            return {"ok": False, "error": "Ticket no encontrado"}, 404
        ticket_service = container().ticket_service
        return Response(
            ticket_service.render_text(ticket),
            mimetype='text/plain',
            headers={
                'Content-Disposition': f'attachment; filename="{ticket_service.text_filename(numero)}"',
            },
        )

    # ─────────────────────────────────────────────────────────────────────────
    # INVENTARIO
    # ─────────────────────────────────────────────────────────────────────────

    @app.route('/api/inventario', methods=['GET'])
    @login_required
    @role_required(*STAFF_ROLES)
    def api_inventario():
        return respond(container().inventory_service.get_overview(session.get('user_id')))

    @app.route('/api/inventario/ajuste', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_inventario_ajuste():
        data = request_data()
        return respond(container().inventory_service.request_adjustment(data.get('producto_id'), data.get('delta')))

    @app.route('/api/inventario/ajuste/confirmar', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_inventario_ajuste_confirmar():
        data = request_data()
        return respond(container().inventory_service.confirm_adjustment(
            data.get('producto_id'),
            data.get('delta'),
            data.get('notas', ''),
            current_actor(),
        ))

    # ─────────────────────────────────────────────────────────────────────────
    # CLIENTES
    # ─────────────────────────────────────────────────────────────────────────

    @app.route('/api/clientes', methods=['GET'])
    @login_required
    @role_required(*STAFF_ROLES)
    def api_clientes():
        customers = container().customer_service.search_customers(request.args.get('q', ''))
        return {'ok': True, 'customers': customers}

    @app.route('/api/clientes', methods=['POST'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_clientes_crear():
        return respond(container().customer_service.create_customer(request_data(), current_actor()))

    @app.route('/api/clientes/<customer_id>', methods=['PUT'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_clientes_editar(customer_id):
        return respond(container().customer_service.update_customer(customer_id, request_data(), current_actor()))

    @app.route('/api/clientes/<customer_id>', methods=['DELETE'])
    @login_required
    @role_required(*STAFF_ROLES)
    @verify_csrf
    def api_clientes_eliminar(customer_id):
        return respond(container().customer_service.delete_customer(customer_id, current_actor()))

    # ─────────────────────────────────────────────────────────────────────────
    # CONFIGURACIÓN Y AUDITORÍA (solo administrador)
    # ─────────────────────────────────────────────────────────────────────────

    @app.route('/api/configuracion', methods=['GET'])
    @login_required
    @role_required(*ADMIN_ROLES)
    def api_configuracion():
        settings = container().settings_service.get_settings(session.get('user_id'))
        return {'ok': True, 'settings': settings.to_dict()}

    @app.route('/api/configuracion', methods=['POST'])
    @login_required
    @role_required(*ADMIN_ROLES)
    @verify_csrf
    def api_configuracion_guardar():
        data = request_data()
        data.pop('csrf_token', None)
        return respond(container().settings_service.save_settings(
            session.get('user_id'), data, current_actor()
        ))

    @app.route('/api/auditoria', methods=['GET'])
    @login_required
    @role_required(*ADMIN_ROLES)
    def api_auditoria():
        return respond(container().audit_service.get_recent_logs(request.args.get('q', '')))

    # ─────────────────────────────────────────────────────────────────────────
    # ESTADO DE CONEXIÓN
    # ─────────────────────────────────────────────────────────────────────────

    @app.route('/api/estado', methods=['GET'])
    @login_required
    def api_estado():
        return dict(container().connection_status.to_dict(), ok=True)

    @app.route('/api/estado', methods=['POST'])
    @login_required
    @verify_csrf
    def api_estado_reportar():
        data = request_data()
        if 'online' not in data:
            return {"ok": False, "error": "Falta el campo 'online'"}, 400
        status = container().connection_status
        status.set_online(_as_bool(data.get('online')))
        return dict(status.to_dict(), ok=True)


if __name__ == '__main__':
    import os

    # En producción usar un servidor WSGI (gunicorn, waitress, etc.)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    create_app().run(host=HOST, port=PORT, debug=DEBUG)

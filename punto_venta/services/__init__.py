# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Los servicios NO dependen del motor de base de datos: reciben repositorios
# que cumplen las interfaces de repositories/interfaces.py.
#
# Los métodos que modifican datos devuelven un dict de resultado:
#   {'ok': True, 'mensaje': '...', ...}  o  {'ok': False, 'error': '...'}
# ==============================================================================

from .audit_service import AuditService
from .auth_service import AuthService
from .settings_service import SettingsService
from .catalog_service import CatalogService, ProductValidationError
from .customer_service import CustomerService
from .inventory_service import InventoryService
from .cart_service import CartService, MemoryCartStore, SessionCartStore
from .ticket_service import TicketService, generate_ticket_number
from .checkout_service import CheckoutService
from .connection_status import ConnectionStatus

__all__ = [
    'AuditService',
    'AuthService',
    'SettingsService',
    'CatalogService',
    'ProductValidationError',
    'CustomerService',
    'InventoryService',
    'CartService',
    'MemoryCartStore',
    'SessionCartStore',
    'TicketService',
    'generate_ticket_number',
    'CheckoutService',
    'ConnectionStatus',
]

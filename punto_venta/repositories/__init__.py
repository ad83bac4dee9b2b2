# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso al almacén relacional (SQLAlchemy).
# Cada método público es una llamada independiente (una transacción).
#
# ESTRUCTURA:
# ├── interfaces.py           → Protocolos/Interfaces (contratos)
# ├── base.py                 → BaseRepository y RepositoryError
# ├── product_repository.py   → Tabla products
# ├── customer_repository.py  → Tabla customers
# ├── movement_repository.py  → Tabla inventory_movements
# ├── audit_repository.py     → Tabla audit_logs
# ├── settings_repository.py  → Tabla settings
# └── profile_repository.py   → Tablas profiles y user_roles
# ==============================================================================

# Interfaces
from .interfaces import (
    IProductRepository,
    ICustomerRepository,
    IMovementRepository,
    IAuditRepository,
    ISettingsRepository,
    IProfileRepository,
)

# Implementaciones SQLAlchemy
from .base import BaseRepository, RepositoryError
from .product_repository import ProductRepository
from .customer_repository import CustomerRepository
from .movement_repository import MovementRepository
from .audit_repository import AuditRepository
from .settings_repository import SettingsRepository
from .profile_repository import ProfileRepository

__all__ = [
    # Interfaces
    'IProductRepository',
    'ICustomerRepository',
    'IMovementRepository',
    'IAuditRepository',
    'ISettingsRepository',
    'IProfileRepository',

    # Base
    'BaseRepository',
    'RepositoryError',

    # Implementaciones
    'ProductRepository',
    'CustomerRepository',
    'MovementRepository',
    'AuditRepository',
    'SettingsRepository',
    'ProfileRepository',
]

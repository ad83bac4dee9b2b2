# ==============================================================================
# INTERFACES DE REPOSITORIOS - CONTRATOS DEL ALMACÉN RELACIONAL
# ==============================================================================
#
# Este archivo define las interfaces (protocolos) que todos los repositorios
# deben implementar. Esto permite:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Los servicios dependen de interfaces, NO de implementaciones concretas
#    - Cambiar SQLite → PostgreSQL solo requiere otra URL de conexión
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#    - Ejemplo: un repositorio de productos que falla en la segunda escritura
#
# 3. DOCUMENTACIÓN
#    - Contratos claros de qué hace cada repositorio
#
# Cada método es una llamada independiente al almacén (una transacción).
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IProductRepository(Protocol):
    """Interfaz para el repositorio de productos."""

    def list_products(self) -> List[Dict[str, Any]]:
        """Todos los productos ordenados por nombre."""
        ...

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...

    def search(self, term: str) -> List[Dict[str, Any]]:
        """Productos cuyo nombre o SKU contiene el término."""
        ...

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def insert_many(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ...

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def set_stock(self, product_id: str, stock: int) -> Optional[Dict[str, Any]]:
        """Escribe el stock absoluto de un producto."""
        ...

    def delete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class ICustomerRepository(Protocol):
    """Interfaz para el repositorio de clientes."""

    def list_customers(self) -> List[Dict[str, Any]]:
        """Clientes, más recientes primero."""
        ...

    def search(self, term: str) -> List[Dict[str, Any]]:
        """Clientes cuyo nombre o email contiene el término."""
        ...

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class IMovementRepository(Protocol):
    """Interfaz para el repositorio de movimientos de inventario (solo agregar)."""

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def list_recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Movimientos más recientes con el nombre del producto."""
        ...


@runtime_checkable
class IAuditRepository(Protocol):
    """Interfaz para el repositorio de auditoría (solo agregar)."""

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def list_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Registros más recientes con nombre y email del usuario."""
        ...


@runtime_checkable
class ISettingsRepository(Protocol):
    """Interfaz para el repositorio de configuración (una fila por usuario)."""

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def exists_for_user(self, user_id: str) -> bool:
        ...

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_for_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class IProfileRepository(Protocol):
    """Interfaz para perfiles de usuario y sus roles."""

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        ...

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...

    def create_profile(self, email: str, full_name: str, password_hash: str, role: str) -> Dict[str, Any]:
        ...

    def get_role(self, user_id: str) -> Optional[str]:
        ...

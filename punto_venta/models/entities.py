# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia.
# ==============================================================================

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from punto_venta.utils import money, to_int


# ==============================================================================
# ENUMERACIONES - Valores cerrados del almacén
# ==============================================================================

class AppRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMINISTRADOR = "administrador"
    VENDEDOR = "vendedor"
    CLIENTE = "cliente"


class ActionType(str, Enum):
    """Tipos de eventos de auditoría (conjunto cerrado)."""
    VENTA_CREADA = "venta_creada"
    VENTA_CANCELADA = "venta_cancelada"
    PRODUCTO_CREADO = "producto_creado"
    PRODUCTO_ACTUALIZADO = "producto_actualizado"
    PRODUCTO_ELIMINADO = "producto_eliminado"
    AJUSTE_INVENTARIO = "ajuste_inventario"
    USUARIO_CREADO = "usuario_creado"
    USUARIO_ACTUALIZADO = "usuario_actualizado"
    USUARIO_ELIMINADO = "usuario_eliminado"
    CONFIGURACION_ACTUALIZADA = "configuracion_actualizada"


# Etiquetas legibles para el visor de auditoría
ACTION_LABELS = {
    ActionType.VENTA_CREADA: "Venta Creada",
    ActionType.VENTA_CANCELADA: "Venta Cancelada",
    ActionType.PRODUCTO_CREADO: "Producto Creado",
    ActionType.PRODUCTO_ACTUALIZADO: "Producto Actualizado",
    ActionType.PRODUCTO_ELIMINADO: "Producto Eliminado",
    ActionType.AJUSTE_INVENTARIO: "Ajuste de Inventario",
    ActionType.USUARIO_CREADO: "Usuario Creado",
    ActionType.USUARIO_ACTUALIZADO: "Usuario Actualizado",
    ActionType.USUARIO_ELIMINADO: "Usuario Eliminado",
    ActionType.CONFIGURACION_ACTUALIZADA: "Configuración Actualizada",
}


class MovementType(str, Enum):
    """Tipos de movimiento de inventario."""
    ENTRADA = "entrada"
    SALIDA = "salida"
    AJUSTE = "ajuste"


DEFAULT_CATEGORY = "Sin categoría"

# Categorías sugeridas en el formulario de productos (texto libre igualmente)
PRODUCT_CATEGORIES = ("Bebidas", "Panadería", "Comida", "Postres", "Snacks", DEFAULT_CATEGORY)


# ==============================================================================
# CARRITO
# ==============================================================================

@dataclass
class CartItem:
    """
    Item del carrito de compras (transitorio, vive en la sesión).

    Guarda una copia del producto al momento de agregarlo. El stock
    capturado aquí es el único límite que se aplica a la cantidad; no se
    vuelve a leer del almacén antes de cobrar.

    Attributes:
        id: ID del producto
        name: Nombre del producto
        sku: SKU del producto
        price: Precio unitario
        category: Categoría
        stock: Stock del producto cuando se agregó al carrito
        quantity: Cantidad solicitada
    """
    id: str
    name: str
    price: Decimal
    category: str
    stock: int
    quantity: int = 1
    sku: str = ''

    @property
    def line_total(self) -> Decimal:
        """Total de la línea (precio × cantidad)."""
        return money(self.price * self.quantity)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario serializable (sesión de Flask / JSON)."""
        d = asdict(self)
        d['price'] = f"{money(self.price):.2f}"
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        """Crea instancia desde diccionario."""
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            price=money(data.get('price', 0)),
            category=data.get('category') or DEFAULT_CATEGORY,
            stock=to_int(data.get('stock'), 0),
            quantity=to_int(data.get('quantity'), 1),
            sku=data.get('sku', '') or '',
        )

    @classmethod
    def from_product(cls, product: Dict[str, Any]) -> 'CartItem':
        """Copia de un producto del catálogo con cantidad 1."""
        return cls(
            id=str(product['id']),
            name=product.get('name', ''),
            price=money(product.get('price', 0)),
            category=product.get('category') or DEFAULT_CATEGORY,
            stock=to_int(product.get('stock'), 0),
            quantity=1,
            sku=product.get('sku', '') or '',
        )


# ==============================================================================
# CONFIGURACIÓN DEL NEGOCIO
# ==============================================================================

@dataclass
class BusinessSettings:
    """
    Configuración del negocio (una fila por usuario).
    Los valores por defecto son los que se devuelven si no existe fila.
    """
    business_name: str = "Mi Negocio"
    rfc: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    printer_enabled: bool = False
    scanner_enabled: bool = False
    payment_cash: bool = True
    payment_card: bool = True
    payment_transfer: bool = False
    low_stock_alerts: bool = True
    daily_reports: bool = True

    @classmethod
    def field_names(cls):
        return tuple(cls.__dataclass_fields__.keys())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BusinessSettings':
        """Crea instancia desde una fila; los NULL toman el valor por defecto."""
        defaults = cls()
        values = {}
        for name in cls.field_names():
            value = data.get(name)
            default = getattr(defaults, name)
            if value is None:
                value = default
            elif isinstance(default, bool):
                value = bool(value)
            else:
                value = str(value)
            values[name] = value
        return cls(**values)


def customer_badge(total_purchases: Any) -> str:
    """
    Distintivo del cliente según su cantidad de compras.

    VIP (más de 20), Frecuente (más de 10), Regular en otro caso.
    """
    purchases = to_int(total_purchases, 0) or 0
    if purchases > 20:
        return "VIP"
    if purchases > 10:
        return "Frecuente"
    return "Regular"


def stock_badge(stock: Any) -> str:
    """Distintivo del producto según su existencia: más de 100, más de 30, resto."""
    units = to_int(stock, 0) or 0
    if units > 100:
        return "Alto Stock"
    if units > 30:
        return "Stock Normal"
    return "Stock Bajo"


# ==============================================================================
# ACTOR - Quién ejecuta una acción (para auditoría)
# ==============================================================================

@dataclass
class Actor:
    """
    Usuario que ejecuta una acción y datos de su petición.

    Attributes:
        user_id: ID del perfil (None para acciones del sistema)
        user_agent: Navegador del cliente
        ip_address: IP del cliente
    """
    user_id: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

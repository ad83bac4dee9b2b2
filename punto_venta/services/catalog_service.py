# ==============================================================================
# SERVICIO DE CATÁLOGO DE PRODUCTOS
# ==============================================================================
# CRUD de productos, búsqueda e importación desde CSV.
#
# Toda la validación se hace aquí, antes de cualquier escritura. La
# unicidad del SKU se verifica contra los productos cargados en ese momento
# (no hay restricción UNIQUE en la tabla).
# ==============================================================================

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from punto_venta.models.entities import ActionType, Actor, DEFAULT_CATEGORY, stock_badge
from punto_venta.performance_logger import profile_function
from punto_venta.repositories.base import RepositoryError
from punto_venta.repositories.interfaces import IProductRepository
from punto_venta.services.audit_service import AuditService
from punto_venta.utils import is_valid_url, money, to_decimal, to_int

logger = logging.getLogger(__name__)


# Sinónimos de encabezados CSV → campo del producto
CSV_HEADER_MAP = {
    'name': 'name',
    'nombre': 'name',
    'category': 'category',
    'categoria': 'category',
    'categoría': 'category',
    'price': 'price',
    'precio': 'price',
    'stock': 'stock',
    'sku': 'sku',
    'description': 'description',
    'descripcion': 'description',
    'descripción': 'description',
}


class ProductValidationError(Exception):
    """Error de validación de un producto (campo + mensaje)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class CatalogService:
    """
    Servicio del catálogo de productos.

    Responsabilidades:
    - Listar y buscar productos
    - Crear/editar/eliminar con validación y auditoría
    - Importar productos desde CSV
    """

    NAME_MAX = 100
    SKU_MAX = 50
    DESCRIPTION_MAX = 500
    # Límites de las columnas: price es Numeric(12, 2), stock es INTEGER de 32 bits
    PRICE_MAX = Decimal('9999999999.99')
    STOCK_MAX = 2147483647

    def __init__(self, product_repo: IProductRepository, audit_service: Optional[AuditService] = None):
        """
        Inicializa el servicio de catálogo.

        Args:
            product_repo: Repositorio de productos
            audit_service: Servicio de auditoría (opcional)
        """
        self.product_repo = product_repo
        self.audit_service = audit_service

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    @staticmethod
    def _with_badge(products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for product in products:
            product['stock_badge'] = stock_badge(product.get('stock'))
        return products

    def list_products(self) -> List[Dict[str, Any]]:
        """Todos los productos ordenados por nombre, con su distintivo de stock."""
        return self._with_badge(self.product_repo.list_products())

    def search_products(self, term: str) -> List[Dict[str, Any]]:
        """Productos cuyo nombre o SKU contiene el término (vacío = todos)."""
        if not term or not term.strip():
            return self.list_products()
        return self._with_badge(self.product_repo.search(term))

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        if not product_id:
            return None
        return self.product_repo.get_by_id(product_id)

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def validate_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Valida y normaliza los datos de un formulario de producto.

        Returns:
            Dict listo para guardar

        Raises:
            ProductValidationError: Con el primer campo inválido
        """
        name = (data.get('name') or '').strip()
        if not name:
            raise ProductValidationError('name', 'El nombre es requerido')
        if len(name) > self.NAME_MAX:
            raise ProductValidationError('name', f'El nombre no puede superar {self.NAME_MAX} caracteres')

        category = (data.get('category') or DEFAULT_CATEGORY).strip()
        if not category:
            raise ProductValidationError('category', 'La categoría es requerida')

        price = to_decimal(data.get('price'))
        if price is None:
            raise ProductValidationError('price', 'Precio inválido')
        if price < 0:
            raise ProductValidationError('price', 'El precio debe ser mayor o igual a 0')
        if price > self.PRICE_MAX:
            raise ProductValidationError('price', f'El precio no puede superar {self.PRICE_MAX}')

        raw_stock = data.get('stock', 0)
        stock = to_int(raw_stock)
        if stock is None:
            # "5.0" es entero válido; "5.5" no
            as_decimal = to_decimal(raw_stock)
            if as_decimal is None or as_decimal != as_decimal.to_integral_value():
                raise ProductValidationError('stock', 'El stock debe ser un número entero')
            if as_decimal > self.STOCK_MAX:
                raise ProductValidationError('stock', f'El stock no puede superar {self.STOCK_MAX}')
            stock = int(as_decimal)
        if stock < 0:
            raise ProductValidationError('stock', 'El stock debe ser mayor o igual a 0')
        if stock > self.STOCK_MAX:
            raise ProductValidationError('stock', f'El stock no puede superar {self.STOCK_MAX}')

        sku = (data.get('sku') or '').strip()
        if not sku:
            raise ProductValidationError('sku', 'El SKU es requerido')
        if len(sku) > self.SKU_MAX:
            raise ProductValidationError('sku', f'El SKU no puede superar {self.SKU_MAX} caracteres')

        description = (data.get('description') or '').strip()
        if len(description) > self.DESCRIPTION_MAX:
            raise ProductValidationError(
                'description', f'La descripción no puede superar {self.DESCRIPTION_MAX} caracteres'
            )

        image_url = (data.get('image_url') or '').strip()
        if image_url and not is_valid_url(image_url):
            raise ProductValidationError('image_url', 'URL inválida')

        return {
            'name': name,
            'category': category,
            'price': money(price),
            'stock': stock,
            'sku': sku,
            'description': description or None,
            'image_url': image_url or None,
        }

    def sku_exists(self, sku: str, exclude_id: Optional[str] = None) -> bool:
        """True si otro producto ya usa el SKU (sin distinguir mayúsculas)."""
        wanted = (sku or '').strip().lower()
        for product in self.product_repo.list_products():
            if exclude_id and product['id'] == exclude_id:
                continue
            if (product.get('sku') or '').strip().lower() == wanted:
                return True
        return False

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_product(self, data: Dict[str, Any], actor: Optional[Actor] = None) -> Dict[str, Any]:
        """
        Crea un producto.

        Returns:
            Dict con ok y product, o ok False con error y field
        """
        try:
            values = self.validate_product(data)
        except ProductValidationError as e:
            return {'ok': False, 'error': e.message, 'field': e.field}

        try:
            if self.sku_exists(values['sku']):
                return {'ok': False, 'error': 'El SKU ya existe', 'field': 'sku'}
            values['created_by'] = actor.user_id if actor else None
            product = self.product_repo.insert(values)
        except RepositoryError as e:
            logger.error("Error creating product: %s", e)
            return {'ok': False, 'error': 'Error al guardar el producto'}

        if self.audit_service:
            self.audit_service.log_product_created(actor, product)

        return {'ok': True, 'mensaje': 'Producto creado correctamente', 'product': product}

    def update_product(self, product_id: str, data: Dict[str, Any], actor: Optional[Actor] = None) -> Dict[str, Any]:
        """
        Edita un producto existente (reemplaza todos los campos del formulario).
        """
        try:
            values = self.validate_product(data)
        except ProductValidationError as e:
            return {'ok': False, 'error': e.message, 'field': e.field}

        try:
            old = self.product_repo.get_by_id(product_id)
            if not old:
                return {'ok': False, 'error': 'Producto no encontrado', 'not_found': True}
            if self.sku_exists(values['sku'], exclude_id=product_id):
                return {'ok': False, 'error': 'El SKU ya existe', 'field': 'sku'}
            product = self.product_repo.update(product_id, values)
        except RepositoryError as e:
            logger.error("Error updating product %s: %s", product_id, e)
            return {'ok': False, 'error': 'Error al guardar el producto'}

        if self.audit_service:
            self.audit_service.log_product_updated(actor, old, product)

        return {'ok': True, 'mensaje': 'Producto actualizado correctamente', 'product': product}

    def delete_product(self, product_id: str, actor: Optional[Actor] = None) -> Dict[str, Any]:
        """Elimina un producto de forma permanente."""
        try:
            deleted = self.product_repo.delete(product_id)
        except RepositoryError as e:
            logger.error("Error deleting product %s: %s", product_id, e)
            return {'ok': False, 'error': 'Error al eliminar el producto'}

        if not deleted:
            return {'ok': False, 'error': 'Producto no encontrado', 'not_found': True}

        if self.audit_service:
            self.audit_service.log_product_deleted(actor, deleted)

        return {'ok': True, 'mensaje': 'Producto eliminado correctamente'}

    # =========================================================================
    # IMPORTACIÓN CSV
    # =========================================================================

    @staticmethod
    def parse_csv(text: str) -> Dict[str, Any]:
        """
        Interpreta el contenido de un CSV de productos.

        La primera línea no vacía es el encabezado. Las líneas vacías se
        descartan antes de numerar, así que "Línea N" cuenta solo líneas
        con contenido (el encabezado es la línea 1). Los campos se separan
        por coma sin soporte de comillas.

        Returns:
            Dict con products (filas válidas) y errors (mensajes por línea).
            Un error de estructura devuelve products vacío y un solo error.
        """
        lines = [line for line in (text or '').splitlines() if line.strip()]
        if len(lines) < 2:
            return {
                'products': [],
                'errors': ['El archivo CSV debe tener al menos una fila de encabezados y una de datos'],
            }

        headers = [h.strip().lower() for h in lines[0].split(',')]
        missing = []
        if 'name' not in headers and 'nombre' not in headers:
            missing.append('name')
        if 'sku' not in headers:
            missing.append('sku')
        if missing:
            return {'products': [], 'errors': [f"Faltan columnas requeridas: {', '.join(missing)}"]}

        products = []
        errors = []
        for index, line in enumerate(lines[1:], start=2):
            values = [v.strip() for v in line.split(',')]
            if len(values) != len(headers):
                errors.append(f"Línea {index}: número incorrecto de columnas")
                continue

            row = {}
            for header, value in zip(headers, values):
                field = CSV_HEADER_MAP.get(header)
                if field:
                    row[field] = value

            if not row.get('name') or not row.get('sku'):
                errors.append(f"Línea {index}: falta nombre o SKU")
                continue

            # Fuera de rango cuenta como inválido: queda en 0
            price = to_decimal(row.get('price'), Decimal('0'))
            if price < 0 or price > CatalogService.PRICE_MAX:
                price = Decimal('0')
            stock = to_int(row.get('stock'))
            if stock is None:
                as_decimal = to_decimal(row.get('stock'), Decimal('0'))
                stock = int(as_decimal) if abs(as_decimal) <= CatalogService.STOCK_MAX else 0
            if stock < 0 or stock > CatalogService.STOCK_MAX:
                stock = 0

            products.append({
                'name': row['name'],
                'category': row.get('category') or DEFAULT_CATEGORY,
                'price': money(price),
                'stock': stock,
                'sku': row['sku'],
                'description': row.get('description') or None,
            })

        return {'products': products, 'errors': errors}

    @profile_function(name="Importar productos CSV")
    def import_csv(self, text: str, actor: Optional[Actor] = None) -> Dict[str, Any]:
        """
        Importa productos desde el texto de un CSV.

        Las filas válidas se insertan en una sola llamada; las inválidas se
        reportan en 'errores' sin detener la importación.

        Args:
            text: Contenido del archivo
            actor: Usuario que importa

        Returns:
            Dict con ok, importados, errores (o error)
        """
        parsed = self.parse_csv(text)
        products = parsed['products']
        errors = parsed['errors']

        if not products:
            return {
                'ok': False,
                'error': errors[0] if errors else 'No hay productos para importar',
                'errores': errors,
            }

        created_by = actor.user_id if actor else None
        for product in products:
            product['created_by'] = created_by

        try:
            inserted = self.product_repo.insert_many(products)
        except RepositoryError as e:
            logger.error("Error importing products: %s", e)
            return {'ok': False, 'error': 'Error al importar productos', 'errores': errors}

        if self.audit_service:
            self.audit_service.log_action(
                ActionType.PRODUCTO_CREADO,
                AuditService.TABLE_PRODUCTS,
                actor,
                new_values={
                    'count': len(inserted),
                    'skus': [p['sku'] for p in inserted],
                },
                description=f"Importación CSV: {len(inserted)} productos",
            )

        return {
            'ok': True,
            'mensaje': f'{len(inserted)} productos importados correctamente',
            'importados': len(inserted),
            'errores': errors,
            'products': inserted,
        }

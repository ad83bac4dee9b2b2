# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a la tabla products
# ==============================================================================

from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select

from punto_venta.models.tables import Product
from .base import LIKE_ESCAPE, BaseRepository


class ProductRepository(BaseRepository):
    """
    Repositorio para gestión del catálogo de productos.

    Formato de cada producto devuelto:
    {
        "id": "3f2a...",
        "name": "Café Americano",
        "category": "Bebidas",
        "price": Decimal("3.50"),
        "stock": 20,
        "sku": "CAF-001",
        "description": None,
        "image_url": None,
        ...
    }
    """

    model = Product

    def list_products(self) -> List[Dict[str, Any]]:
        """Todos los productos ordenados por nombre."""
        return self.get_all(order_by=Product.name)

    def search(self, term: str) -> List[Dict[str, Any]]:
        """
        Busca productos por nombre o SKU (sin distinguir mayúsculas).

        Args:
            term: Texto a buscar
        """
        pattern = self._like_pattern(term)

        def op(session):
            stmt = (
                select(Product)
                .where(or_(
                    func.lower(Product.name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(Product.sku).like(pattern, escape=LIKE_ESCAPE),
                ))
                .order_by(Product.name)
            )
            return [self._to_dict(r) for r in session.scalars(stmt).all()]
        return self._run(op)

    def set_stock(self, product_id: str, stock: int) -> Optional[Dict[str, Any]]:
        """
        Escribe el stock absoluto de un producto.

        Returns:
            Producto actualizado o None si no existe
        """
        return self.update(product_id, {'stock': stock})

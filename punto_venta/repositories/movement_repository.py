# ==============================================================================
# REPOSITORIO DE MOVIMIENTOS DE INVENTARIO
# ==============================================================================
# Tabla de solo agregar: los movimientos no se editan ni se borran.
# ==============================================================================

from typing import Any, Dict, List

from sqlalchemy import select

from punto_venta.models.tables import InventoryMovement, Product
from .base import BaseRepository


class MovementRepository(BaseRepository):
    """
    Repositorio del historial de movimientos.

    Cada movimiento guarda el stock anterior y el nuevo, de modo que el
    historial se puede leer sin reconstruir cálculos.
    """

    model = InventoryMovement

    def list_recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Movimientos más recientes primero, con el nombre y SKU del producto.

        El producto puede haber sido eliminado; en ese caso los campos
        product_name y product_sku quedan en None.

        Args:
            limit: Máximo de movimientos a devolver
        """
        def op(session):
            stmt = (
                select(InventoryMovement, Product.name, Product.sku)
                .outerjoin(Product, Product.id == InventoryMovement.product_id)
                .order_by(InventoryMovement.created_at.desc())
                .limit(limit)
            )
            rows = []
            for movement, name, sku in session.execute(stmt).all():
                data = self._to_dict(movement)
                data['product_name'] = name
                data['product_sku'] = sku
                rows.append(data)
            return rows
        return self._run(op)

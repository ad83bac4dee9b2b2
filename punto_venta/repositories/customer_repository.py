# ==============================================================================
# REPOSITORIO DE CLIENTES
# ==============================================================================

from typing import Any, Dict, List

from sqlalchemy import func, or_, select

from punto_venta.models.tables import Customer
from .base import LIKE_ESCAPE, BaseRepository


class CustomerRepository(BaseRepository):
    """Acceso a la tabla customers."""

    model = Customer

    def list_customers(self) -> List[Dict[str, Any]]:
        return self.get_all(order_by=Customer.created_at.desc())

    def search(self, term: str) -> List[Dict[str, Any]]:
        """Clientes cuyo nombre o email contiene el término."""
        pattern = self._like_pattern(term)

        def op(session):
            stmt = (
                select(Customer)
                .where(or_(
                    func.lower(Customer.name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(Customer.email, '')).like(pattern, escape=LIKE_ESCAPE),
                ))
                .order_by(Customer.created_at.desc())
            )
            return [self._to_dict(r) for r in session.scalars(stmt).all()]
        return self._run(op)

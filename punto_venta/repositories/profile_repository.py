# ==============================================================================
# REPOSITORIO DE PERFILES Y ROLES
# ==============================================================================
# Encapsula el acceso a las tablas profiles y user_roles.
# Los hashes de contraseña los genera el servicio; aquí solo se guardan.
# ==============================================================================

from typing import Any, Dict, Optional

from sqlalchemy import func, select

from punto_venta.models.tables import Profile, UserRole
from .base import BaseRepository


class ProfileRepository(BaseRepository):
    """Repositorio de perfiles de usuario."""

    model = Profile

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Perfil por email (sin distinguir mayúsculas)."""
        normalized = (email or '').strip().lower()

        def op(session):
            stmt = select(Profile).where(func.lower(Profile.email) == normalized).limit(1)
            return self._to_dict(session.scalars(stmt).first())
        return self._run(op)

    def create_profile(self, email: str, full_name: str, password_hash: str, role: str) -> Dict[str, Any]:
        """
        Crea el perfil y su rol en una misma transacción.

        Returns:
            Perfil creado (con la clave 'role')
        """
        def op(session):
            profile = Profile(
                email=(email or '').strip().lower(),
                full_name=full_name,
                password_hash=password_hash,
            )
            session.add(profile)
            session.flush()
            session.add(UserRole(user_id=profile.id, role=role))
            session.flush()
            data = self._to_dict(profile)
            data['role'] = role
            return data
        return self._run(op)

    def get_role(self, user_id: str) -> Optional[str]:
        """Rol del usuario (el primero registrado si tuviera varios)."""
        def op(session):
            stmt = (
                select(UserRole.role)
                .where(UserRole.user_id == user_id)
                .order_by(UserRole.created_at)
                .limit(1)
            )
            return session.scalars(stmt).first()
        return self._run(op)

# ==============================================================================
# SERVICIO DE AUTENTICACIÓN
# ==============================================================================
# Inicio de sesión contra la tabla profiles (hash de Werkzeug) y roles de
# la tabla user_roles.
#
# Toda la lógica de permisos y validaciones está aquí, NO en rutas.
# ==============================================================================

import logging
from typing import Any, Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from punto_venta.models.entities import ActionType, Actor, AppRole
from punto_venta.repositories.base import RepositoryError
from punto_venta.repositories.interfaces import IProfileRepository
from punto_venta.services.audit_service import AuditService
from punto_venta.utils import is_valid_email

logger = logging.getLogger(__name__)


class AuthService:
    """
    Servicio de autenticación y roles.

    Responsabilidades:
    - Verificar credenciales
    - Registrar usuarios con su rol
    - Consultar el rol de un usuario
    """

    MIN_PASSWORD_LENGTH = 6

    def __init__(self, profile_repo: IProfileRepository, audit_service: Optional[AuditService] = None):
        self.profile_repo = profile_repo
        self.audit_service = audit_service

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Autentica un usuario.

        Args:
            email: Email del perfil
            password: Contraseña en texto plano

        Returns:
            Dict con id, email, full_name y role si es válido, None si no
        """
        if not email or not password:
            return None
        try:
            profile = self.profile_repo.get_by_email(email)
            if not profile or not profile.get('password_hash'):
                return None
            if not check_password_hash(profile['password_hash'], password):
                return None
            role = self.profile_repo.get_role(profile['id'])
        except RepositoryError as e:
            logger.error("Error authenticating %s: %s", email, e)
            return None

        return {
            'id': profile['id'],
            'email': profile.get('email'),
            'full_name': profile.get('full_name'),
            'role': role,
        }

    # =========================================================================
    # ROLES
    # =========================================================================

    @staticmethod
    def normalize_role(role: str) -> str:
        """Rol válido o 'cliente' si no se reconoce."""
        try:
            return AppRole((role or '').strip().lower()).value
        except ValueError:
            return AppRole.CLIENTE.value

    def get_role(self, user_id: str) -> Optional[str]:
        try:
            return self.profile_repo.get_role(user_id)
        except RepositoryError as e:
            logger.error("Error loading role for %s: %s", user_id, e)
            return None

    # =========================================================================
    # REGISTRO
    # =========================================================================

    def create_user(
        self,
        email: str,
        password: str,
        full_name: str = '',
        role: str = AppRole.CLIENTE.value,
        actor: Optional[Actor] = None
    ) -> Dict[str, Any]:
        """
        Registra un perfil con su rol.

        Args:
            email: Email (único, sin distinguir mayúsculas)
            password: Contraseña en texto plano
            full_name: Nombre completo
            role: Rol inicial
            actor: Quién registra (auditoría)

        Returns:
            Dict con resultado (ok, error, user)
        """
        email = (email or '').strip().lower()
        if not is_valid_email(email):
            return {'ok': False, 'error': 'Email inválido', 'field': 'email'}
        if not password or len(password) < self.MIN_PASSWORD_LENGTH:
            return {
                'ok': False,
                'error': f'La contraseña debe tener al menos {self.MIN_PASSWORD_LENGTH} caracteres',
                'field': 'password',
            }

        role = self.normalize_role(role)
        try:
            if self.profile_repo.get_by_email(email):
                return {'ok': False, 'error': 'El usuario ya existe', 'field': 'email'}
            profile = self.profile_repo.create_profile(
                email, (full_name or '').strip(), generate_password_hash(password), role
            )
        except RepositoryError as e:
            logger.error("Error creating user %s: %s", email, e)
            return {'ok': False, 'error': 'Error al crear usuario'}

        profile.pop('password_hash', None)
        if self.audit_service:
            self.audit_service.log_action(
                ActionType.USUARIO_CREADO, AuditService.TABLE_PROFILES, actor,
                record_id=profile['id'],
                new_values={'email': email, 'full_name': profile.get('full_name'), 'role': role},
                description=f"Usuario creado: {email} ({role})",
            )
        return {'ok': True, 'user': profile}

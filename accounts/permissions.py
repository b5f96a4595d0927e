"""
Permissions DRF basées sur les rôles du portail (groupes Django).
"""
from rest_framework import permissions

from .roles import Roles
from .services import IdentityService


class _RolePermission(permissions.BasePermission):
    roles = ()

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return any(IdentityService.is_in_role(user, role) for role in self.roles)


class EstAdministrateur(_RolePermission):
    """Accès réservé aux administrateurs."""
    roles = (Roles.ADMINISTRATOR,)


class EstAgent(_RolePermission):
    """Accès réservé aux agents (réservation des opérations)."""
    roles = (Roles.AGENT,)


class EstClient(_RolePermission):
    """Accès réservé aux clients (application client)."""
    roles = (Roles.CLIENT,)


class EstAdministrateurOuAgent(_RolePermission):
    """Accès réservé au personnel de l'entreprise (application entreprise)."""
    roles = Roles.ADMIN_ET_AGENT

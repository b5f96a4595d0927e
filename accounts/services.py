import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.db import transaction
from rest_framework_simplejwt.tokens import RefreshToken

from operations.enums import TypeOperation
from operations.exceptions import OperationInvalide

from .models import Compte
from .roles import Roles

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Réponses aux questions d'identité et de rôle posées par le cœur métier :
    « l'utilisateur X a-t-il le rôle Y », « quel est son périmètre de type
    d'opération », nom d'affichage et adresse de notification.
    """

    @staticmethod
    def get_user(user_id):
        if user_id in (None, ''):
            return None
        User = get_user_model()
        return User.objects.filter(pk=user_id).first()

    @staticmethod
    def is_in_role(user, role: str) -> bool:
        if user is None or not getattr(user, 'is_authenticated', False):
            return False
        return user.groups.filter(name=role).exists()

    @staticmethod
    def get_roles(user) -> frozenset:
        """Ensemble des rôles (capacités) détenus par l'utilisateur."""
        if user is None or not getattr(user, 'is_authenticated', False):
            return frozenset()
        noms = user.groups.filter(name__in=Roles.TOUS).values_list('name', flat=True)
        return frozenset(noms)

    @staticmethod
    def _compte(user):
        if user is None:
            return None
        try:
            return user.compte
        except Compte.DoesNotExist:
            return None

    @staticmethod
    def get_type_operation(user):
        compte = IdentityService._compte(user)
        if compte is None or compte.type_operation is None:
            return None
        return TypeOperation(compte.type_operation)

    @staticmethod
    def get_code_client(user):
        compte = IdentityService._compte(user)
        if compte is None or not compte.code_client:
            return None
        return compte.code_client

    @staticmethod
    def get_user_name(user):
        if user is None:
            return None
        return user.username or None

    @staticmethod
    def get_user_email_notif(user):
        if user is None:
            return None
        compte = IdentityService._compte(user)
        if compte is not None:
            return compte.email_notification or None
        return user.email or None

    @staticmethod
    def get_all_users_in_role(role: str):
        User = get_user_model()
        return User.objects.filter(groups__name=role, is_active=True).order_by('id')


# --- Gestion des comptes (administrateurs) ---

def creer_compte(donnees):
    """
    Crée un utilisateur Django, son profil Compte et l'affecte à son rôle.

    donnees: dict avec username, email, password, role, et optionnellement
    email_notif, telephone, type_operation, code_client.
    """
    role = donnees['role']
    if role not in Roles.TOUS:
        raise OperationInvalide('Rôle inconnu')

    User = get_user_model()
    with transaction.atomic():
        user = User.objects.create_user(
            username=donnees['username'],
            email=donnees['email'],
            password=donnees['password'],
        )
        groupe, _ = Group.objects.get_or_create(name=role)
        user.groups.add(groupe)
        compte = Compte.objects.create(
            user=user,
            telephone=donnees.get('telephone', ''),
            email_notif=donnees.get('email_notif', ''),
            type_operation=donnees.get('type_operation'),
            code_client=donnees.get('code_client', '') if role == Roles.CLIENT else '',
        )

    logger.info(f"Compte {user.username} créé avec le rôle {role}")
    return compte


def modifier_compte(compte, donnees):
    user = compte.user
    for champ in ('username', 'email'):
        if champ in donnees:
            setattr(user, champ, donnees[champ])
    if 'a_acces' in donnees:
        user.is_active = donnees['a_acces']
        compte.a_acces = donnees['a_acces']
    for champ in ('telephone', 'email_notif', 'type_operation', 'code_client'):
        if champ in donnees:
            setattr(compte, champ, donnees[champ])

    with transaction.atomic():
        user.save()
        compte.save()

    logger.info(f"Compte {user.username} modifié")
    return compte


# --- Fonction de login avec JWT ---
def login_et_jwt(email, mot_de_passe):
    """
    Authentifie un utilisateur (tous rôles) et retourne les tokens JWT si succès.
    """
    User = get_user_model()
    user = User.objects.filter(email=email).first()
    if user is None or not user.is_active or not user.check_password(mot_de_passe):
        return None

    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
        'user': {
            'id': user.id,
            'email': user.email,
            'username': user.username,
            'roles': sorted(IdentityService.get_roles(user)),
        },
    }

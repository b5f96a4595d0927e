import logging

from rest_framework import status, viewsets, permissions
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.decorators import action
from rest_framework_simplejwt.views import TokenRefreshView
from drf_spectacular.utils import (
    extend_schema, extend_schema_view, OpenApiExample, OpenApiResponse
)

from .models import Compte
from .permissions import EstAdministrateur
from .roles import Roles
from .serializers import (
    LoginSerializer,
    CompteSerializer,
    CreerCompteSerializer,
    ModifierCompteSerializer,
)
from .services import creer_compte, modifier_compte, login_et_jwt

logger = logging.getLogger(__name__)


class LoginView(APIView):
    """
    POST /api/auth/login/

    Connexion email/motDePasse commune aux applications client et entreprise.
    """
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        tags=["🔐 Authentification"],
        summary="Connexion utilisateur",
        description="""
        Authentifie un utilisateur (administrateur, agent ou client) et retourne les tokens JWT.

        **Retour**:
        - access: Token d'accès JWT (15 minutes)
        - refresh: Token de rafraîchissement (7 jours)
        - user: identifiant, email, nom d'utilisateur et rôles
        """,
        request=LoginSerializer,
        responses={
            200: OpenApiResponse(
                description="Connexion réussie",
                examples=[OpenApiExample(
                    "Succès connexion",
                    value={
                        "access": "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9...",
                        "refresh": "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9...",
                        "user": {
                            "id": 1,
                            "email": "agent@nej.tn",
                            "username": "agent1",
                            "roles": ["Agent"]
                        }
                    }
                )]
            ),
            400: OpenApiResponse(description="Données invalides"),
            401: OpenApiResponse(
                description="Identifiants incorrects",
                examples=[OpenApiExample(
                    "Erreur authentification",
                    value={"detail": "Identifiants invalides"}
                )]
            ),
        }
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        resultat = login_et_jwt(
            serializer.validated_data['email'],
            serializer.validated_data['motDePasse'],
        )
        if resultat is None:
            logger.warning(f"Échec de connexion pour {serializer.validated_data['email']}")
            return Response(
                {"detail": "Identifiants invalides"},
                status=status.HTTP_401_UNAUTHORIZED
            )
        return Response(resultat, status=status.HTTP_200_OK)


@extend_schema(
    tags=["🔐 Authentification"],
    summary="Renouvellement du token d'accès",
    description="Génère un nouveau couple access/refresh à partir d'un token de rafraîchissement valide.",
)
class TokenRefreshViewCustom(TokenRefreshView):
    """
    POST /api/auth/token/refresh/
    """
    permission_classes = [permissions.AllowAny]


class MoiAPIView(APIView):
    """
    GET /api/auth/moi/
    Profil et rôles de l'utilisateur connecté.
    """

    @extend_schema(
        tags=["🔐 Authentification"],
        summary="Profil de l'utilisateur connecté",
        responses={200: CompteSerializer, 404: OpenApiResponse(description="Aucun profil associé")},
    )
    def get(self, request):
        compte = Compte.objects.filter(user=request.user).select_related('user').first()
        if compte is None:
            return Response({"detail": "Aucun profil associé à cet utilisateur."}, status=status.HTTP_404_NOT_FOUND)
        return Response(CompteSerializer(compte).data)


@extend_schema_view(
    list=extend_schema(
        summary="Liste des comptes",
        description="""
        Liste les comptes du portail (administrateurs, agents, clients).

        **Permissions requises**: Administrateur
        **Filtre**: `?role=Agent` pour ne lister qu'un rôle
        """,
        responses={200: CompteSerializer(many=True)}
    ),
    retrieve=extend_schema(summary="Détails d'un compte"),
    create=extend_schema(
        summary="Créer un compte",
        description="Crée l'utilisateur, son profil et l'affecte à son rôle. Le code client est obligatoire pour un client.",
        request=CreerCompteSerializer,
        responses={201: CompteSerializer}
    ),
    partial_update=extend_schema(
        summary="Modifier un compte",
        request=ModifierCompteSerializer,
        responses={200: CompteSerializer}
    ),
)
@extend_schema(tags=["👤 Comptes"])
class CompteViewSet(viewsets.ModelViewSet):
    serializer_class = CompteSerializer
    permission_classes = [EstAdministrateur]
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_queryset(self):
        queryset = Compte.objects.select_related('user').all()
        role = self.request.query_params.get('role')
        if role in Roles.TOUS:
            queryset = queryset.filter(user__groups__name=role)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = CreerCompteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        compte = creer_compte(serializer.validated_data)
        return Response(CompteSerializer(compte).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        compte = self.get_object()
        serializer = ModifierCompteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        compte = modifier_compte(compte, serializer.validated_data)
        return Response(CompteSerializer(compte).data)

    @extend_schema(
        summary="Agents actifs",
        description="Liste des agents, utilisée pour l'affectation des opérations.",
        responses={200: CompteSerializer(many=True)}
    )
    @action(detail=False, methods=['get'], url_path='agents')
    def agents(self, request):
        comptes = Compte.objects.select_related('user').filter(
            user__groups__name=Roles.AGENT, user__is_active=True
        )
        return Response(CompteSerializer(comptes, many=True).data)

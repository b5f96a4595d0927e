"""
Views Django REST Framework pour le module Opérations (applications
entreprise et client).
"""
import logging

from django.conf import settings
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response
from drf_spectacular.utils import (
    extend_schema, OpenApiExample, OpenApiResponse
)

from accounts.permissions import EstAdministrateurOuAgent, EstAgent, EstClient
from accounts.serializers import UtilisateurResumeSerializer

from . import queries
from .serializers import (
    OperationSerializer,
    OperationDetailSerializer,
    HistoriqueSerializer,
    CommentaireSerializer,
    CreerOperationSerializer,
    ClientCreerOperationSerializer,
    ModifierDetailsSerializer,
    ClientModifierDetailsSerializer,
    DocumentsSerializer,
    ClientDocumentsSerializer,
    CommentaireInputSerializer,
    OperationFiltresSerializer,
    HistoriqueFiltresSerializer,
    DashboardFiltresSerializer,
    page_serializee,
)
from .services import OperationService

logger = logging.getLogger(__name__)


def lire_parametres(serializer_class, request):
    """Valide les paramètres de requête ; les valeurs nulles sont ignorées."""
    serializer = serializer_class(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    donnees = {k: v for k, v in serializer.validated_data.items() if v is not None}
    page_number = donnees.pop('page_number', 1)
    page_size = donnees.pop('page_size', getattr(settings, 'NEJPORTAL_PAGE_SIZE', 10))
    logger.debug(f"Paramètres {serializer_class.__name__} : page={page_number}, taille={page_size}, {donnees}")
    return donnees, page_number, page_size


def lire_corps(serializer_class, request, partial=False):
    serializer = serializer_class(data=request.data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def reponse_modification(modifiee, message):
    return Response({
        'success': True,
        'modifiee': modifiee,
        'message': message if modifiee else "Aucune modification effectuée.",
    })


EXEMPLE_PAGE = OpenApiExample(
    "Page d'opérations",
    value={
        "items": [{"id": 12, "client_nom": "societe-x", "etat_operation": 0, "est_reserver": False}],
        "page_number": 1,
        "total_pages": 1,
        "total_count": 1,
        "has_previous_page": False,
        "has_next_page": False
    },
    response_only=True,
)


# ============================================================================
# APPLICATION ENTREPRISE
# ============================================================================

@extend_schema(tags=["📦 Opérations (entreprise)"])
class EntrepriseOperationViewSet(viewsets.ViewSet):
    """
    Opérations vues par le personnel (administrateurs et agents).
    """
    permission_classes = [EstAdministrateurOuAgent]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        summary="Liste des opérations",
        description="""
        Liste paginée des opérations, restreinte au type d'opération du membre du personnel s'il en a un.

        **Tri**: non clôturées d'abord, puis non réservées, puis par date de dernière modification.
        **Filtres**: identifiant (sous-chaîne), période de création, type, états, clients, agents
        (les drapeaux `in_*` choisissent inclusion ou exclusion).
        """,
        parameters=[OperationFiltresSerializer],
        examples=[EXEMPLE_PAGE],
    )
    def list(self, request):
        filtres, page_number, page_size = lire_parametres(OperationFiltresSerializer, request)
        page = queries.lister_operations(request.user, filtres, page_number, page_size)
        return Response(page_serializee(page, OperationSerializer))

    @extend_schema(summary="Mes opérations", description="Opérations réservées par l'utilisateur connecté.",
                   parameters=[OperationFiltresSerializer])
    @action(detail=False, methods=['get'], url_path='my')
    def mes_operations(self, request):
        filtres, page_number, page_size = lire_parametres(OperationFiltresSerializer, request)
        page = queries.mes_operations(request.user, filtres, page_number, page_size)
        return Response(page_serializee(page, OperationSerializer))

    @extend_schema(
        summary="Opérations non réservées",
        description="Opérations ni réservées ni clôturées. Un agent doit avoir un type d'opération.",
        parameters=[OperationFiltresSerializer],
    )
    @action(detail=False, methods=['get'], url_path='not-reserved')
    def non_reservees(self, request):
        filtres, page_number, page_size = lire_parametres(OperationFiltresSerializer, request)
        page = queries.operations_non_reservees(request.user, filtres, page_number, page_size)
        return Response(page_serializee(page, OperationSerializer))

    @extend_schema(
        summary="Créer une opération",
        description="""
        Crée une opération pour un client, éventuellement affectée à un agent, avec fichiers
        et commentaire initial. Tout est enregistré dans une seule transaction.

        **Effets**: historique de création, notification de l'agent affecté et du client.
        """,
        request=CreerOperationSerializer,
        responses={201: OperationSerializer, 400: OpenApiResponse(description="Client, agent ou type invalide")},
    )
    @action(detail=False, methods=['post'], url_path='create')
    def creer(self, request):
        donnees = lire_corps(CreerOperationSerializer, request)
        operation = OperationService.creer_operation(request.user, **donnees)
        return Response(OperationSerializer(operation).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Détails d'une opération", responses={200: OperationDetailSerializer})
    @action(detail=True, methods=['get'], url_path='details')
    def details(self, request, pk=None):
        operation = queries.details_operation(request.user, pk)
        return Response(OperationDetailSerializer(operation).data)

    @extend_schema(
        summary="Réserver une opération",
        description="""
        Le premier agent qui réserve une opération non réservée l'obtient. Une opération
        déjà réservée n'est pas une erreur : la réponse indique `reservee: false`.
        """,
        request=None,
        responses={
            200: OpenApiResponse(
                description="Résultat de la réservation",
                examples=[OpenApiExample("Réservée", value={"success": True, "reservee": True,
                                                             "message": "Opération réservée."})]
            ),
            403: OpenApiResponse(description="L'utilisateur n'est pas agent"),
            404: OpenApiResponse(description="Opération introuvable"),
        },
    )
    @action(detail=True, methods=['post'], url_path='reserve', permission_classes=[EstAgent])
    def reserver(self, request, pk=None):
        reservee = OperationService.reserver_operation(request.user, pk)
        return Response({
            'success': True,
            'reservee': reservee,
            'message': "Opération réservée." if reservee else "Opération déjà réservée.",
        })

    @extend_schema(
        summary="Modifier les détails d'une opération",
        description="""
        Modification champ par champ selon le rôle :

        - **Administrateur** : tous les champs (type, priorité, TR, débours, confirmation de dédouanement compris).
        - **Agent** : état, bureau, régime, agent réservataire, hors demande de clôture ;
          état et code dossier avec un code dossier valide.

        La clôture exige un code dossier valide (400 sinon, sans aucune modification).
        Une demande sans changement effectif ne produit ni historique ni notification.
        """,
        request=ModifierDetailsSerializer,
        examples=[OpenApiExample(
            "Clôture",
            value={"etat_operation": 10, "code_dossier": "111111"},
            request_only=True,
        )],
    )
    @action(detail=True, methods=['put', 'patch'], url_path='update-info-general')
    def modifier_details(self, request, pk=None):
        donnees = lire_corps(ModifierDetailsSerializer, request, partial=True)
        modifiee = OperationService.modifier_details_operation(request.user, pk, donnees)
        return reponse_modification(modifiee, "Détails de l'opération modifiés.")

    @extend_schema(
        summary="Ajouter / valider des documents",
        description="Ajoute des fichiers et bascule l'acceptation des documents listés dans `document_ids`.",
        request=DocumentsSerializer,
    )
    @action(detail=True, methods=['post', 'put'], url_path='update-documents')
    def modifier_documents(self, request, pk=None):
        donnees = lire_corps(DocumentsSerializer, request)
        modifiee = OperationService.ajouter_documents(request.user, pk, **donnees)
        return reponse_modification(modifiee, "Documents de l'opération modifiés.")

    @extend_schema(summary="Commenter une opération", request=CommentaireInputSerializer,
                   responses={201: CommentaireSerializer})
    @action(detail=True, methods=['post', 'put'], url_path='update-commentaires')
    def commenter(self, request, pk=None):
        donnees = lire_corps(CommentaireInputSerializer, request)
        commentaire = OperationService.ajouter_commentaire(request.user, pk, donnees['message'])
        if commentaire is None:
            return reponse_modification(False, "")
        return Response(CommentaireSerializer(commentaire).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Valeurs des filtres", description="Types, états, agents, clients et dossiers proposés par le front.")
    @action(detail=False, methods=['get'], url_path='filters')
    def filtres(self, request):
        resultat = queries.filtres_operations(request.user)
        return Response({
            **resultat,
            'agents': UtilisateurResumeSerializer(resultat['agents'], many=True).data,
            'clients': UtilisateurResumeSerializer(resultat['clients'], many=True).data,
        })

    @extend_schema(summary="Tableau de bord", parameters=[DashboardFiltresSerializer])
    @action(detail=False, methods=['get'], url_path='dashboard')
    def dashboard(self, request):
        filtres, _, _ = lire_parametres(DashboardFiltresSerializer, request)
        return Response(queries.tableau_de_bord(request.user, **filtres))


@extend_schema(tags=["🕓 Historiques"])
class EntrepriseHistoriqueViewSet(viewsets.ViewSet):
    permission_classes = [EstAdministrateurOuAgent]

    @extend_schema(summary="Historique des opérations", parameters=[HistoriqueFiltresSerializer])
    def list(self, request):
        filtres, page_number, page_size = lire_parametres(HistoriqueFiltresSerializer, request)
        page = queries.lister_historiques(request.user, filtres.get('operation_id'), page_number, page_size)
        return Response(page_serializee(page, HistoriqueSerializer))


# ============================================================================
# APPLICATION CLIENT
# ============================================================================

@extend_schema(tags=["🧾 Opérations (client)"])
class ClientOperationViewSet(viewsets.ViewSet):
    """
    Opérations du client connecté uniquement.
    """
    permission_classes = [EstClient]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(summary="Mes opérations (client)", parameters=[OperationFiltresSerializer], examples=[EXEMPLE_PAGE])
    def list(self, request):
        filtres, page_number, page_size = lire_parametres(OperationFiltresSerializer, request)
        page = queries.client_lister_operations(request.user, filtres, page_number, page_size)
        return Response(page_serializee(page, OperationSerializer))

    @extend_schema(
        summary="Déposer une opération",
        description="Création en libre-service ; les administrateurs sont notifiés.",
        request=ClientCreerOperationSerializer,
        responses={201: OperationSerializer},
    )
    @action(detail=False, methods=['post'], url_path='create')
    def creer(self, request):
        donnees = lire_corps(ClientCreerOperationSerializer, request)
        operation = OperationService.client_creer_operation(request.user, **donnees)
        return Response(OperationSerializer(operation).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Détails d'une opération (client)", responses={200: OperationDetailSerializer})
    @action(detail=True, methods=['get'], url_path='details')
    def details(self, request, pk=None):
        operation = queries.client_details_operation(request.user, pk)
        return Response(OperationDetailSerializer(operation).data)

    @extend_schema(
        summary="Modifier type, bureau ou régime",
        description="Possible uniquement tant que l'opération est au dépôt du dossier (400 ensuite).",
        request=ClientModifierDetailsSerializer,
    )
    @action(detail=True, methods=['put', 'patch'], url_path='update-info-general')
    def modifier_details(self, request, pk=None):
        donnees = lire_corps(ClientModifierDetailsSerializer, request, partial=True)
        modifiee = OperationService.client_modifier_details_operation(request.user, pk, donnees)
        return reponse_modification(modifiee, "Détails de l'opération modifiés.")

    @extend_schema(
        summary="Ajouter des documents (client)",
        description="Sans effet sur une opération clôturée.",
        request=ClientDocumentsSerializer,
    )
    @action(detail=True, methods=['post', 'put'], url_path='update-documents')
    def modifier_documents(self, request, pk=None):
        donnees = lire_corps(ClientDocumentsSerializer, request)
        modifiee = OperationService.client_ajouter_documents(request.user, pk, donnees.get('fichiers'))
        return reponse_modification(modifiee, "Documents de l'opération modifiés.")

    @extend_schema(summary="Commenter une opération (client)", request=CommentaireInputSerializer,
                   responses={201: CommentaireSerializer})
    @action(detail=True, methods=['post', 'put'], url_path='update-commentaires')
    def commenter(self, request, pk=None):
        donnees = lire_corps(CommentaireInputSerializer, request)
        commentaire = OperationService.client_ajouter_commentaire(request.user, pk, donnees['message'])
        if commentaire is None:
            return reponse_modification(False, "")
        return Response(CommentaireSerializer(commentaire).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Tableau de bord (client)", parameters=[DashboardFiltresSerializer])
    @action(detail=False, methods=['get'], url_path='dashboard')
    def dashboard(self, request):
        filtres, _, _ = lire_parametres(DashboardFiltresSerializer, request)
        return Response(queries.client_tableau_de_bord(request.user, **filtres))


@extend_schema(tags=["🕓 Historiques"])
class ClientHistoriqueViewSet(viewsets.ViewSet):
    permission_classes = [EstClient]

    @extend_schema(summary="Historique de mes opérations", parameters=[HistoriqueFiltresSerializer])
    def list(self, request):
        filtres, page_number, page_size = lire_parametres(HistoriqueFiltresSerializer, request)
        page = queries.client_lister_historiques(request.user, filtres.get('operation_id'), page_number, page_size)
        return Response(page_serializee(page, HistoriqueSerializer))

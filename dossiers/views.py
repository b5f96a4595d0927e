"""
Views des dossiers : lecture seule, calculées à partir des opérations et
des factures.
"""
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiExample

from accounts.permissions import EstAdministrateurOuAgent, EstClient
from accounts.serializers import UtilisateurResumeSerializer
from operations.serializers import page_serializee
from operations.views import lire_parametres

from .serializers import (
    DossierSerializer,
    DossierCompletSerializer,
    DossierFiltresSerializer,
    ClientDossierFiltresSerializer,
)
from .services import DossierService


@extend_schema(tags=["🗂️ Dossiers"])
class EntrepriseDossierViewSet(viewsets.ViewSet):
    permission_classes = [EstAdministrateurOuAgent]
    lookup_value_regex = '[^/]+'

    @extend_schema(
        summary="Liste des dossiers",
        description="""
        Opérations regroupées par code dossier (ordre croissant), avec le nombre de factures,
        les montants cumulés et l'état de paiement calculé :

        - une facture en paiement incomplet : **Paiement incomplet**
        - toutes les factures payées : **Payée**
        - sinon (ou sans facture) : **Impayée**
        """,
        parameters=[DossierFiltresSerializer],
        examples=[OpenApiExample(
            "Page de dossiers",
            value={
                "items": [{
                    "code_dossier": "111111", "nombre_operations": 2, "nombre_factures": 2,
                    "description": "Transit\nMagasinage", "montant_total": "150.000",
                    "montant_paye": "100.000", "montant_reste": "50.000",
                    "etat_payement": 1, "etat_payement_display": "Paiement incomplet"
                }],
                "page_number": 1, "total_pages": 1, "total_count": 1,
                "has_previous_page": False, "has_next_page": False
            },
            response_only=True,
        )],
    )
    @action(detail=False, methods=['get'], url_path='all')
    def tous(self, request):
        filtres, page_number, page_size = lire_parametres(DossierFiltresSerializer, request)
        page = DossierService.lister_dossiers(request.user, page_number=page_number, page_size=page_size, **filtres)
        return Response(page_serializee(page, DossierSerializer))

    @extend_schema(summary="Détails d'un dossier", responses={200: DossierCompletSerializer})
    @action(detail=True, methods=['get'], url_path='details')
    def details(self, request, pk=None):
        return Response(DossierCompletSerializer(DossierService.details_dossier(request.user, pk)).data)

    @extend_schema(summary="Valeurs des filtres de dossiers")
    @action(detail=False, methods=['get'], url_path='filters')
    def filtres(self, request):
        resultat = DossierService.filtres_dossiers(request.user)
        return Response({
            **resultat,
            'clients': UtilisateurResumeSerializer(resultat['clients'], many=True).data,
            'agents': UtilisateurResumeSerializer(resultat['agents'], many=True).data,
        })


@extend_schema(tags=["🗂️ Dossiers"])
class ClientDossierViewSet(viewsets.ViewSet):
    permission_classes = [EstClient]
    lookup_value_regex = '[^/]+'

    @extend_schema(summary="Mes dossiers", parameters=[ClientDossierFiltresSerializer])
    @action(detail=False, methods=['get'], url_path='all')
    def tous(self, request):
        filtres, page_number, page_size = lire_parametres(ClientDossierFiltresSerializer, request)
        page = DossierService.client_lister_dossiers(request.user, page_number=page_number, page_size=page_size, **filtres)
        return Response(page_serializee(page, DossierSerializer))

    @extend_schema(summary="Détails d'un de mes dossiers", responses={200: DossierCompletSerializer})
    @action(detail=True, methods=['get'], url_path='details')
    def details(self, request, pk=None):
        return Response(DossierCompletSerializer(DossierService.client_details_dossier(request.user, pk)).data)

    @extend_schema(summary="Valeurs des filtres de mes dossiers")
    @action(detail=False, methods=['get'], url_path='filters')
    def filtres(self, request):
        return Response(DossierService.client_filtres_dossiers(request.user))

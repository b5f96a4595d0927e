"""
Serializers Django REST Framework pour le module Opérations.
"""
from rest_framework import serializers

from accounts.serializers import UtilisateurResumeSerializer

from .enums import TypeOperation, OperationPriorite, EtatOperation
from .models import Operation, Document, Commentaire, Historique


# ============================================================================
# LECTURE
# ============================================================================

class OperationSerializer(serializers.ModelSerializer):
    """Serializer pour les listes d'opérations"""
    client_nom = serializers.CharField(source='utilisateur.username', read_only=True)
    agent_nom = serializers.CharField(source='reserver_par.username', read_only=True, default=None)
    est_reserver = serializers.BooleanField(read_only=True)
    est_verrouillee = serializers.BooleanField(read_only=True)
    type_operation_display = serializers.CharField(source='get_type_operation_display', read_only=True)
    etat_operation_display = serializers.CharField(source='get_etat_operation_display', read_only=True)

    class Meta:
        model = Operation
        fields = [
            'id', 'utilisateur', 'client_nom', 'reserver_par', 'agent_nom', 'est_reserver',
            'type_operation', 'type_operation_display', 'operation_priorite',
            'etat_operation', 'etat_operation_display', 'regime', 'bureau', 'code_dossier',
            'tr', 'debours', 'confirmation_dedouanement', 'est_verrouillee',
            'created', 'last_modified',
        ]
        read_only_fields = fields


class DocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Document
        fields = ['id', 'operation', 'nom_document', 'fichier', 'taille_fichier', 'type_fichier', 'est_accepte', 'created']
        read_only_fields = fields


class CommentaireSerializer(serializers.ModelSerializer):
    utilisateur_nom = serializers.CharField(source='utilisateur.username', read_only=True, default=None)

    class Meta:
        model = Commentaire
        fields = ['id', 'operation', 'utilisateur', 'utilisateur_nom', 'message', 'created']
        read_only_fields = fields


class HistoriqueSerializer(serializers.ModelSerializer):
    utilisateur_nom = serializers.CharField(source='utilisateur.username', read_only=True, default=None)

    class Meta:
        model = Historique
        fields = ['id', 'operation', 'utilisateur', 'utilisateur_nom', 'action', 'created']
        read_only_fields = fields


class OperationDetailSerializer(serializers.Serializer):
    """Opération détaillée avec ses pièces jointes et son client"""
    operation = OperationSerializer(source='*')
    documents = DocumentSerializer(many=True)
    commentaires = CommentaireSerializer(many=True)
    historiques = HistoriqueSerializer(many=True)
    client = UtilisateurResumeSerializer(source='utilisateur')


def page_serializee(page, serializer_class, context=None):
    """Sérialise les éléments d'une page retournée par operations.pagination.paginer."""
    return {
        **page,
        'items': serializer_class(page['items'], many=True, context=context or {}).data,
    }


# ============================================================================
# ÉCRITURE
# ============================================================================

class CreerOperationSerializer(serializers.Serializer):
    client_id = serializers.IntegerField()
    agent_id = serializers.IntegerField(required=False, allow_null=True)
    type_operation = serializers.ChoiceField(choices=TypeOperation.choices)
    operation_priorite = serializers.ChoiceField(choices=OperationPriorite.choices, default=OperationPriorite.NORMALE)
    tr = serializers.BooleanField(default=False)
    debours = serializers.BooleanField(default=False)
    confirmation_dedouanement = serializers.BooleanField(default=False)
    commentaire = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    fichiers = serializers.ListField(child=serializers.FileField(), required=False)


class ClientCreerOperationSerializer(serializers.Serializer):
    type_operation = serializers.ChoiceField(choices=TypeOperation.choices)
    commentaire = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    fichiers = serializers.ListField(child=serializers.FileField(), required=False)


class ModifierDetailsSerializer(serializers.Serializer):
    """
    Champs modifiables par le personnel. Seuls les champs envoyés sont
    demandés ; utiliser avec partial=True.
    """
    type_operation = serializers.ChoiceField(choices=TypeOperation.choices)
    etat_operation = serializers.ChoiceField(choices=EtatOperation.choices)
    operation_priorite = serializers.ChoiceField(choices=OperationPriorite.choices)
    code_dossier = serializers.CharField(max_length=50, allow_blank=True, allow_null=True)
    bureau = serializers.CharField(max_length=100, allow_blank=True, allow_null=True)
    regime = serializers.CharField(max_length=100, allow_blank=True, allow_null=True)
    reserver_par = serializers.IntegerField(allow_null=True)
    tr = serializers.BooleanField()
    debours = serializers.BooleanField()
    confirmation_dedouanement = serializers.BooleanField()


class ClientModifierDetailsSerializer(serializers.Serializer):
    type_operation = serializers.ChoiceField(choices=TypeOperation.choices)
    bureau = serializers.CharField(max_length=100, allow_blank=True, allow_null=True)
    regime = serializers.CharField(max_length=100, allow_blank=True, allow_null=True)


class DocumentsSerializer(serializers.Serializer):
    fichiers = serializers.ListField(child=serializers.FileField(), required=False)
    document_ids = serializers.ListField(child=serializers.IntegerField(), required=False)


class ClientDocumentsSerializer(serializers.Serializer):
    fichiers = serializers.ListField(child=serializers.FileField(), required=False)


class CommentaireInputSerializer(serializers.Serializer):
    message = serializers.CharField(allow_blank=True)


# ============================================================================
# PARAMÈTRES DE LISTE
# ============================================================================

class PaginationSerializer(serializers.Serializer):
    page_number = serializers.IntegerField(min_value=1, default=1)
    page_size = serializers.IntegerField(min_value=1, max_value=200, required=False)


class OperationFiltresSerializer(PaginationSerializer):
    recherche_id = serializers.CharField(required=False, allow_blank=True)
    date_debut = serializers.DateTimeField(required=False)
    date_fin = serializers.DateTimeField(required=False)
    type_operation = serializers.ChoiceField(choices=TypeOperation.choices, required=False)
    etats = serializers.ListField(child=serializers.ChoiceField(choices=EtatOperation.choices), required=False)
    in_etats = serializers.BooleanField(required=False, allow_null=True)
    clients = serializers.ListField(child=serializers.IntegerField(), required=False)
    in_clients = serializers.BooleanField(required=False, allow_null=True)
    agents = serializers.ListField(child=serializers.IntegerField(), required=False)
    in_agents = serializers.BooleanField(required=False, allow_null=True)


class HistoriqueFiltresSerializer(PaginationSerializer):
    operation_id = serializers.IntegerField(required=False)


class DashboardFiltresSerializer(serializers.Serializer):
    annee = serializers.IntegerField(min_value=2000, max_value=2100, required=False)
    mois = serializers.IntegerField(min_value=1, max_value=12, required=False)

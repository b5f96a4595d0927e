from rest_framework import serializers

from operations.enums import EtatPayement
from operations.serializers import OperationSerializer, PaginationSerializer

from .models import Facture


class FactureSerializer(serializers.ModelSerializer):
    etat_payement_display = serializers.CharField(source='get_etat_payement_display', read_only=True)

    class Meta:
        model = Facture
        fields = [
            'id', 'indice', 'code_facture', 'code_dossier', 'code_client',
            'date_echeance', 'date_emission',
            'montant_total', 'montant_paye', 'montant_restant', 'devise',
            'description', 'chemin_fichier', 'methode_paiement', 'instructions_paiement',
            'etat_payement', 'etat_payement_display',
        ]
        read_only_fields = fields


class DossierSerializer(serializers.Serializer):
    """Dossier calculé : opérations regroupées par code et totaux des factures"""
    code_dossier = serializers.CharField()
    nombre_operations = serializers.IntegerField()
    nombre_factures = serializers.IntegerField()
    description = serializers.CharField()
    montant_total = serializers.DecimalField(max_digits=20, decimal_places=3)
    montant_paye = serializers.DecimalField(max_digits=20, decimal_places=3)
    montant_reste = serializers.DecimalField(max_digits=20, decimal_places=3)
    etat_payement = serializers.IntegerField()
    etat_payement_display = serializers.SerializerMethodField()

    def get_etat_payement_display(self, obj):
        return EtatPayement(obj['etat_payement']).label


class DossierDetailSerializer(DossierSerializer):
    client = serializers.CharField()
    agents = serializers.CharField()


class DossierCompletSerializer(serializers.Serializer):
    dossier = DossierDetailSerializer()
    operations = OperationSerializer(many=True)
    factures = FactureSerializer(many=True)


class DossierFiltresSerializer(PaginationSerializer):
    code_dossier = serializers.CharField(required=False, allow_blank=True)
    etats_payement = serializers.ListField(child=serializers.ChoiceField(choices=EtatPayement.choices), required=False)
    clients = serializers.ListField(child=serializers.IntegerField(), required=False)
    agents = serializers.ListField(child=serializers.IntegerField(), required=False)


class ClientDossierFiltresSerializer(PaginationSerializer):
    code_dossier = serializers.CharField(required=False, allow_blank=True)
    etats_payement = serializers.ListField(child=serializers.ChoiceField(choices=EtatPayement.choices), required=False)

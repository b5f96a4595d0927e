from django.contrib import admin
from .models import Client, Dossier, Facture


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['code_client', 'nom', 'created']
    search_fields = ['code_client', 'nom']


@admin.register(Dossier)
class DossierAdmin(admin.ModelAdmin):
    list_display = ['code_dossier', 'code_client', 'date']
    search_fields = ['code_dossier', 'code_client']


@admin.register(Facture)
class FactureAdmin(admin.ModelAdmin):
    list_display = ['code_facture', 'code_dossier', 'code_client', 'montant_total', 'montant_paye', 'etat_payement']
    list_filter = ['etat_payement', 'devise']
    search_fields = ['code_facture', 'code_dossier', 'code_client']

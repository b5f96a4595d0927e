from django.contrib import admin
from .models import Operation, Document, Commentaire, Historique


class DocumentInline(admin.TabularInline):
    model = Document
    extra = 0
    readonly_fields = ['created']


class CommentaireInline(admin.TabularInline):
    model = Commentaire
    extra = 0
    readonly_fields = ['created']


@admin.register(Operation)
class OperationAdmin(admin.ModelAdmin):
    list_display = ['id', 'utilisateur', 'reserver_par', 'type_operation', 'etat_operation', 'code_dossier', 'last_modified']
    list_filter = ['type_operation', 'etat_operation', 'operation_priorite']
    search_fields = ['id', 'code_dossier', 'utilisateur__username', 'reserver_par__username']
    inlines = [DocumentInline, CommentaireInline]


@admin.register(Historique)
class HistoriqueAdmin(admin.ModelAdmin):
    list_display = ['operation', 'utilisateur', 'action', 'created']
    search_fields = ['action']
    readonly_fields = ['operation', 'utilisateur', 'action', 'created']

    def has_change_permission(self, request, obj=None):
        return False

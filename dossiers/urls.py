from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import EntrepriseDossierViewSet, ClientDossierViewSet

entreprise_router = DefaultRouter()
entreprise_router.register(r'dossiers', EntrepriseDossierViewSet, basename='entreprise-dossier')

client_router = DefaultRouter()
client_router.register(r'dossiers', ClientDossierViewSet, basename='client-dossier')

urlpatterns = [
    path('entreprise/', include(entreprise_router.urls)),
    path('client/', include(client_router.urls)),
]

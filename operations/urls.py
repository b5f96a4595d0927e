from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    EntrepriseOperationViewSet,
    EntrepriseHistoriqueViewSet,
    ClientOperationViewSet,
    ClientHistoriqueViewSet,
)

# Application entreprise (administrateurs et agents)
entreprise_router = DefaultRouter()
entreprise_router.register(r'operations', EntrepriseOperationViewSet, basename='entreprise-operation')
entreprise_router.register(r'historiques', EntrepriseHistoriqueViewSet, basename='entreprise-historique')

# Application client
client_router = DefaultRouter()
client_router.register(r'operations', ClientOperationViewSet, basename='client-operation')
client_router.register(r'historiques', ClientHistoriqueViewSet, basename='client-historique')

urlpatterns = [
    path('entreprise/', include(entreprise_router.urls)),
    path('client/', include(client_router.urls)),
]

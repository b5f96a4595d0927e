from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    LoginView,
    TokenRefreshViewCustom,
    MoiAPIView,
    CompteViewSet,
)

# Router pour l'administration des comptes (application entreprise)
admin_router = DefaultRouter()
admin_router.register(r'comptes', CompteViewSet, basename='compte')

urlpatterns = [
    # Authentification
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/token/refresh/', TokenRefreshViewCustom.as_view(), name='token_refresh'),
    path('auth/moi/', MoiAPIView.as_view(), name='moi'),

    # Administration des comptes
    path('entreprise/', include(admin_router.urls)),
]

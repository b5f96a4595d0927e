"""
URL configuration du portail NEJ.

Application entreprise sous /api/entreprise/, application client sous
/api/client/.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    # Documentation API centralisée à la racine
    path('', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui-home'),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),

    path('api/', include('accounts.urls')),       # /api/auth/ et /api/entreprise/comptes/
    path('api/', include('operations.urls')),     # /api/{entreprise,client}/operations/ et historiques/
    path('api/', include('dossiers.urls')),       # /api/{entreprise,client}/dossiers/
    path('api/', include('notifications.urls')),  # /api/notifications/
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

"""
Traduction des exceptions métier en réponses HTTP pour Django REST Framework.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from operations.exceptions import ErreurInattendue, Introuvable, NonAutorise, OperationInvalide

logger = logging.getLogger(__name__)


def portail_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, NonAutorise):
        request = context.get('request')
        user = getattr(request, 'user', None)
        code = status.HTTP_403_FORBIDDEN if user is not None and user.is_authenticated else status.HTTP_401_UNAUTHORIZED
        return Response({'detail': str(exc) or "Accès non autorisé."}, status=code)

    if isinstance(exc, Introuvable):
        return Response({'detail': str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, OperationInvalide):
        return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, ErreurInattendue):
        logger.error(f"Erreur inattendue: {exc} (cause: {exc.__cause__!r})")
        return Response({'detail': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return None

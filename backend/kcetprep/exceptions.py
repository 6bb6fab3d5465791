import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _detail_message(detail):
    if isinstance(detail, list) and detail:
        return _detail_message(detail[0])
    if isinstance(detail, dict):
        return detail.get("message") or detail.get("detail") or "Request failed"
    return str(detail)


def api_exception_handler(exc, context):
    """Render every API error as ``{"message": ...}``, the shape the SPA reads."""
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "view")
        return Response({"message": "Server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        response.data = {"message": "Unauthorized"}
        response.status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, exceptions.PermissionDenied):
        response.data = {"message": "Forbidden"}
    elif isinstance(exc, exceptions.Throttled):
        response.data = {"message": "Too many requests", "retryAfter": exc.wait}
    elif isinstance(exc, exceptions.ValidationError):
        response.data = {"message": "Validation failed", "details": exc.detail}
    else:
        response.data = {"message": _detail_message(getattr(exc, "detail", str(exc)))}
    return response

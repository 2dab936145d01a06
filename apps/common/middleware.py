import logging
import time

from .utils import get_client_ip

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Log method, path, status and timing for API requests."""

    path_prefix = "/api/"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith(self.path_prefix):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = (time.monotonic() - started) * 1000

        user = getattr(request, "user", None)
        user_id = user.pk if user is not None and user.is_authenticated else None
        message = (
            f"{request.method} {request.get_full_path()} {response.status_code} "
            f"{duration_ms:.1f}ms ip={get_client_ip(request)} user={user_id}"
        )

        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        return response

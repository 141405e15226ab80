import logging
import uuid
from time import perf_counter

from django.conf import settings
from django.db import connection, reset_queries

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = 'X-Correlation-ID'


class TimingMiddleware:
    """
    Middleware simple pour logguer le temps total et les requêtes SQL des appels menu.
    Propage aussi un identifiant de corrélation (X-Correlation-ID) sur chaque réponse.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or uuid.uuid4().hex
        request.correlation_id = correlation_id

        if settings.DEBUG and request.path.startswith('/api/menu'):
            reset_queries()
            t0 = perf_counter()
            response = self.get_response(request)
            total_ms = (perf_counter() - t0) * 1000
            num_queries = len(connection.queries)
            db_time_ms = sum(float(q.get('time', 0)) for q in connection.queries) * 1000
            logger.info(
                "[TimingMiddleware] %s %s total_ms=%.1f db_queries=%d db_time_ms=%.1f correlation_id=%s",
                request.method,
                request.path,
                total_ms,
                num_queries,
                db_time_ms,
                correlation_id,
            )
            # Exposer les timings au client (onglet 'Server-Timing' des DevTools)
            response.headers['Server-Timing'] = (
                f"app;dur={total_ms:.1f}, db;dur={db_time_ms:.1f}, "
                f"queries;desc=\"{num_queries} SQL\""
            )
        else:
            response = self.get_response(request)

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response

"""
Exécution transactionnelle avec reprise sur erreur de connexion transitoire
"""
import logging
import time

from django.conf import settings
from django.db import InterfaceError, OperationalError, connection, transaction

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, InterfaceError)


def run_in_transaction(func, *args, **kwargs):
    """
    Exécute `func` dans `transaction.atomic()`, rejoué en entier en cas d'erreur transitoire.

    `func` doit pouvoir être rejoué : aucun appel externe non idempotent à l'intérieur.
    Dans un bloc atomique déjà ouvert, une seule tentative (la transaction englobante décide).
    """
    if connection.in_atomic_block:
        with transaction.atomic():
            return func(*args, **kwargs)

    max_attempts = max(1, getattr(settings, 'DB_TRANSACTION_MAX_ATTEMPTS', 3))
    retry_delay = getattr(settings, 'DB_TRANSACTION_RETRY_DELAY', 0.5)

    for attempt in range(1, max_attempts + 1):
        try:
            with transaction.atomic():
                return func(*args, **kwargs)
        except TRANSIENT_ERRORS as exc:
            if attempt >= max_attempts:
                logger.error("[Transaction] Échec après %d tentative(s): %s", attempt, exc)
                raise
            logger.warning(
                "[Transaction] Erreur transitoire (tentative %d/%d): %s",
                attempt,
                max_attempts,
                exc,
            )
            connection.close()
            if retry_delay:
                time.sleep(retry_delay * attempt)

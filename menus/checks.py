"""
Vérifications de configuration (`manage.py check`, au démarrage du serveur)

Avec des workers Celery dans d'autres process, les notifications et le cache
doivent être partagés : un backend local au process ne voit pas ce que
publie ou invalide le worker.
"""
from django.conf import settings
from django.core import checks

LOCAL_CACHE_BACKENDS = (
    'django.core.cache.backends.locmem.LocMemCache',
    'django.core.cache.backends.dummy.DummyCache',
)


@checks.register(checks.Tags.compatibility)
def check_shared_backends(app_configs=None, **kwargs):
    if getattr(settings, 'CELERY_TASK_ALWAYS_EAGER', False):
        return []

    errors = []
    if getattr(settings, 'NOTIFICATION_BACKEND', 'local') != 'redis':
        errors.append(checks.Error(
            "NOTIFICATION_BACKEND='local' avec des workers Celery hors process : "
            "MenuGenerated / MenuGenerationError n'atteindront jamais les clients.",
            hint="Définir REDIS_URL (ou NOTIFICATION_BACKEND=redis), ou CELERY_TASK_ALWAYS_EAGER=True.",
            id='menus.E001',
        ))
    if settings.CACHES['default']['BACKEND'] in LOCAL_CACHE_BACKENDS:
        errors.append(checks.Warning(
            "Cache local au process avec des workers Celery hors process : "
            "les invalidations faites par le worker ne toucheront pas le cache du serveur web.",
            hint="Définir REDIS_URL pour utiliser RedisCache.",
            id='menus.W001',
        ))
    return errors

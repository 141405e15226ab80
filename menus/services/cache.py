"""
Cache des lectures de menus (framework de cache Django)

Le cache n'est jamais la source de vérité : toute erreur du backend est
journalisée puis traitée comme un miss (lecture) ou ignorée (écriture).
"""
import logging
from typing import Iterable, Optional

from django.core.cache import cache

logger = logging.getLogger(__name__)

MENU_TTL = 10 * 60
MENUS_ALL_TTL = 10 * 60
MENU_SETTINGS_TTL = 5 * 60
SHOPPING_LIST_TTL = 10 * 60
FAMILY_ACCESS_TTL = 5 * 60


def menu_key(user_id, menu_id) -> str:
    return f"menu:{user_id}:{menu_id}"


def menus_all_key(user_id) -> str:
    return f"menus:all:{user_id}"


def menu_settings_key(user_id) -> str:
    return f"menu_settings:{user_id}"


def shopping_list_key(user_id, menu_id) -> str:
    return f"shopping_list:{user_id}:{menu_id}"


def family_access_key(user_id) -> str:
    return f"family:accessible:{user_id}"


def cache_get(key: str):
    try:
        return cache.get(key)
    except Exception as exc:
        logger.warning("[Cache] Lecture impossible pour %s: %s", key, exc)
        return None


def cache_set(key: str, value, ttl: int):
    try:
        cache.set(key, value, ttl)
    except Exception as exc:
        logger.warning("[Cache] Écriture impossible pour %s: %s", key, exc)


def cache_delete(*keys: str):
    try:
        cache.delete_many(keys)
    except Exception as exc:
        logger.warning("[Cache] Suppression impossible pour %s: %s", ', '.join(keys), exc)


def invalidate_menu_caches(user_ids: Iterable[int], menu_id: Optional[int] = None):
    """
    Invalide la liste des menus (et le menu / la liste de courses si `menu_id`)
    pour chaque utilisateur concerné, pas seulement l'auteur de la mutation.
    """
    keys = []
    for user_id in set(user_ids):
        keys.append(menus_all_key(user_id))
        if menu_id is not None:
            keys.append(menu_key(user_id, menu_id))
            keys.append(shopping_list_key(user_id, menu_id))
    if keys:
        cache_delete(*keys)
        logger.debug("[Cache] Invalidation de %d clé(s) (menu=%s)", len(keys), menu_id)


def invalidate_family_caches(user1_id: int, user2_id: int):
    """Création ou suppression d'un lien famille : l'accès croisé des deux comptes change"""
    cache_delete(
        family_access_key(user1_id),
        family_access_key(user2_id),
        menus_all_key(user1_id),
        menus_all_key(user2_id),
    )
    logger.info("[Cache] Caches famille invalidés pour user=%s et user=%s", user1_id, user2_id)

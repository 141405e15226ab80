"""
Résolution des utilisateurs accessibles (soi-même + partenaire du lien famille)
"""
from typing import List

from django.db.models import Q

from accounts.models import FamilyLink
from .cache import FAMILY_ACCESS_TTL, cache_get, cache_set, family_access_key


def get_accessible_user_ids(user_id: int) -> List[int]:
    cache_key = family_access_key(user_id)
    cached = cache_get(cache_key)
    if cached is not None:
        return cached

    user_ids = [user_id]
    link = FamilyLink.objects.filter(Q(user1_id=user_id) | Q(user2_id=user_id)).first()
    if link is not None:
        user_ids.append(link.other_user_id(user_id))

    cache_set(cache_key, user_ids, FAMILY_ACCESS_TTL)
    return user_ids

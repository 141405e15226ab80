from unittest.mock import MagicMock, patch

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase

from accounts.models import FamilyLink
from menus.models import ShoppingList
from menus.services import menu_service
from menus.services.cache import (
    cache_delete,
    cache_get,
    cache_set,
    family_access_key,
    invalidate_family_caches,
    menu_key,
    menus_all_key,
    shopping_list_key,
)
from menus.services.parameters import parse_parameters
from menus.services.user_access import get_accessible_user_ids

from .helpers import PARAMETERS, create_menu, create_recipe, create_user


class CacheFailOpenTestCase(SimpleTestCase):
    def test_backend_errors_are_treated_as_miss(self):
        broken = MagicMock()
        broken.get.side_effect = ConnectionError("redis down")
        broken.set.side_effect = ConnectionError("redis down")
        broken.delete_many.side_effect = ConnectionError("redis down")

        with patch('menus.services.cache.cache', broken):
            with self.assertLogs('menus.services.cache', level='WARNING'):
                self.assertIsNone(cache_get('menu:1:2'))
                cache_set('menu:1:2', {'id': 2}, 60)
                cache_delete('menu:1:2', 'menus:all:1')

    def test_key_formats(self):
        self.assertEqual(menu_key(1, 2), 'menu:1:2')
        self.assertEqual(menus_all_key(1), 'menus:all:1')
        self.assertEqual(shopping_list_key(1, 2), 'shopping_list:1:2')
        self.assertEqual(family_access_key(1), 'family:accessible:1')


class FamilyCacheCoherencyTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.alice = create_user('alice')
        self.bob = create_user('bob')
        FamilyLink.objects.create(user1=self.alice, user2=self.bob)

        self.menu = create_menu(self.alice, status='ready')
        self.recipe = create_recipe(self.menu, 'Gratin', [('Pomme de terre', '1 kg', 'Légumes')])
        ShoppingList.objects.create(menu=self.menu)

    def test_accessible_user_ids_include_partner(self):
        self.assertEqual(get_accessible_user_ids(self.alice.id), [self.alice.id, self.bob.id])
        self.assertEqual(get_accessible_user_ids(self.bob.id), [self.bob.id, self.alice.id])
        self.assertEqual(cache.get(family_access_key(self.alice.id)), [self.alice.id, self.bob.id])

    def test_unlinking_invalidates_accessible_ids(self):
        get_accessible_user_ids(self.alice.id)
        FamilyLink.objects.all().delete()
        invalidate_family_caches(self.alice.id, self.bob.id)

        self.assertEqual(get_accessible_user_ids(self.alice.id), [self.alice.id])

    def test_menu_list_is_served_from_cache(self):
        first = menu_service.get_all_menus(self.bob)

        with self.assertNumQueries(0):
            second = menu_service.get_all_menus(self.bob)

        self.assertEqual(first, second)
        self.assertEqual([menu['id'] for menu in second], [self.menu.id])

    def test_partner_cache_evicted_on_delete(self):
        menu_service.get_all_menus(self.bob)
        menu_service.get_menu(self.bob, self.menu.id)
        self.assertIsNotNone(cache.get(menus_all_key(self.bob.id)))
        self.assertIsNotNone(cache.get(menu_key(self.bob.id, self.menu.id)))

        menu_service.delete_menu(self.alice, self.menu.id)

        self.assertIsNone(cache.get(menus_all_key(self.bob.id)))
        self.assertIsNone(cache.get(menu_key(self.bob.id, self.menu.id)))
        self.assertEqual(menu_service.get_all_menus(self.bob), [])

    def test_partner_cache_evicted_when_recipe_cooked(self):
        menu_service.get_menu(self.alice, self.menu.id)
        menu_service.get_all_menus(self.bob)

        menu_service.set_recipe_cooked(self.bob, self.recipe.id, True)

        self.assertIsNone(cache.get(menu_key(self.alice.id, self.menu.id)))
        self.assertIsNone(cache.get(menus_all_key(self.bob.id)))
        payload = menu_service.get_menu(self.alice, self.menu.id)
        self.assertTrue(payload['recipes'][0]['is_cooked'])

    def test_partner_cache_evicted_on_generation_start(self):
        menu_service.get_all_menus(self.bob)

        menu_service.start_menu_generation(self.alice, parse_parameters(PARAMETERS))

        self.assertIsNone(cache.get(menus_all_key(self.bob.id)))

    def test_unvalidated_menu_is_never_cached(self):
        pending = create_menu(self.alice)

        payload = menu_service.get_menu(self.alice, pending.id)

        self.assertFalse(payload['is_validated'])
        self.assertIsNone(cache.get(menu_key(self.alice.id, pending.id)))

        menu_service.get_menu(self.alice, self.menu.id)
        self.assertIsNotNone(cache.get(menu_key(self.alice.id, self.menu.id)))

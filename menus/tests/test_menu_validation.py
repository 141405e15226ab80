from unittest.mock import AsyncMock, patch

from django.core.cache import cache
from django.test import TestCase

from accounts.models import FamilyLink
from menus.models import Dish, Menu, Recipe, ShoppingList, ShoppingListItem
from menus.services import menu_service
from menus.services.exceptions import FavoriteNotFoundError, GenerationError, MenuNotFoundError, MenuStateError
from menus.services.pydantic_models import GeneratedShoppingList, ShoppingListItemGenerated

from .helpers import (
    POULET_INGREDIENTS,
    QUICHE_INGREDIENTS,
    create_dish,
    create_favorite,
    create_menu,
    create_recipe,
    create_user,
)


def shopping_list_result():
    return GeneratedShoppingList(items=[
        ShoppingListItemGenerated(name='Poulet', quantity='4 cuisses', category='Viandes'),
        ShoppingListItemGenerated(name='Poivron', quantity='2', category='Légumes'),
        ShoppingListItemGenerated(name='Tomate', quantity='400 g', category='Légumes'),
    ])


class MenuValidationTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.user = create_user('validation_tester')
        self.menu = create_menu(self.user, status='ready')

        self.dish = create_dish('Poulet Basquaise', POULET_INGREDIENTS)
        self.poulet = create_recipe(
            self.menu, 'Poulet Basquaise', POULET_INGREDIENTS,
            dish=self.dish, original_dish_id=self.dish.id,
        )
        self.quiche = create_recipe(self.menu, 'Quiche Lorraine', QUICHE_INGREDIENTS)

    def validate(self, favorite_ids=None, user=None):
        with patch('menus.services.ai_service.generate_shopping_list', new_callable=AsyncMock) as mocked:
            mocked.return_value = shopping_list_result()
            result = menu_service.validate_menu(user or self.user, self.menu.id, favorite_ids)
        return result, mocked

    def test_validation_creates_shopping_list(self):
        result, mocked = self.validate()

        self.assertTrue(result['is_validated'])
        shopping_list = ShoppingList.objects.get(menu=self.menu)
        self.assertEqual(shopping_list.items.count(), 3)
        mocked.assert_awaited_once()
        titles = [recipe['title'] for recipe in mocked.call_args.args[0]]
        self.assertEqual(sorted(titles), ['Poulet Basquaise', 'Quiche Lorraine'])

    def test_validation_is_idempotent(self):
        self.validate()
        items_before = list(ShoppingListItem.objects.values_list('name', 'quantity', 'category'))

        result, mocked = self.validate()

        mocked.assert_not_awaited()
        self.assertTrue(result['is_validated'])
        self.assertEqual(ShoppingList.objects.filter(menu=self.menu).count(), 1)
        self.assertEqual(list(ShoppingListItem.objects.values_list('name', 'quantity', 'category')), items_before)

    def test_every_recipe_gets_a_catalog_dish(self):
        self.validate()

        quiche = Recipe.objects.get(id=self.quiche.id)
        self.assertIsNotNone(quiche.dish_id)
        self.assertEqual(quiche.original_dish_id, quiche.dish_id)
        self.assertEqual(Recipe.objects.get(id=self.poulet.id).dish_id, self.dish.id)
        self.assertEqual(Dish.objects.count(), 2)

    def test_ensure_dishes_reuses_matching_dish_and_is_idempotent(self):
        existing = create_dish('quiche lorraine', QUICHE_INGREDIENTS)

        created = menu_service.ensure_dishes_for_menu(self.menu, self.user)
        created_again = menu_service.ensure_dishes_for_menu(self.menu, self.user)

        self.assertEqual(created, 0)
        self.assertEqual(created_again, 0)
        self.assertEqual(Recipe.objects.get(id=self.quiche.id).dish_id, existing.id)
        self.assertEqual(Dish.objects.count(), 2)

    def test_matching_favorite_claims_recipe(self):
        favorite = create_favorite(
            self.user, 'quiche lorraine', list(reversed(QUICHE_INGREDIENTS)),
            description='La quiche de mamie',
            detailed_recipe='1. Préchauffer le four',
            preparation_time=15,
        )

        result, mocked = self.validate()

        quiche = Recipe.objects.get(id=self.quiche.id)
        self.assertTrue(quiche.is_from_database)
        self.assertEqual(quiche.original_dish_id, favorite.id)
        self.assertEqual(quiche.description, 'La quiche de mamie')
        self.assertEqual(quiche.detailed_recipe, '1. Préchauffer le four')
        self.assertEqual(quiche.preparation_time, 15)
        self.assertIsNotNone(quiche.dish_id)

        # Seules les recettes hors catalogue passent par l'IA
        titles = [recipe['title'] for recipe in mocked.call_args.args[0]]
        self.assertEqual(titles, ['Poulet Basquaise'])

        names = set(ShoppingListItem.objects.values_list('name', flat=True))
        self.assertTrue({'Pâte brisée', 'Lardons', 'Oeuf', 'Poulet'} <= names)
        self.assertTrue(result['is_validated'])

    def test_favorites_of_other_users_do_not_claim(self):
        create_favorite(create_user('stranger'), 'Quiche Lorraine', QUICHE_INGREDIENTS)

        self.validate()

        self.assertFalse(Recipe.objects.get(id=self.quiche.id).is_from_database)

    def test_requested_favorites_are_added_to_menu(self):
        favorite = create_favorite(self.user, 'Ratatouille', [('Courgette', '2', 'Légumes')])

        result, _ = self.validate(favorite_ids=[favorite.id, favorite.id])

        added = Recipe.objects.filter(menu=self.menu, title='Ratatouille')
        self.assertEqual(added.count(), 1)
        self.assertTrue(added.first().is_from_database)
        self.assertEqual(added.first().original_dish_id, favorite.id)
        self.assertEqual(len(result['recipes']), 3)
        self.assertTrue(ShoppingListItem.objects.filter(name='Courgette').exists())

    def test_unknown_favorite_is_rejected(self):
        foreign = create_favorite(create_user('stranger'), 'Tajine', [('Agneau', '1 kg', 'Viandes')])

        with self.assertRaises(FavoriteNotFoundError):
            self.validate(favorite_ids=[foreign.id])
        with self.assertRaises(FavoriteNotFoundError):
            self.validate(favorite_ids=[999999])

        self.assertFalse(ShoppingList.objects.filter(menu=self.menu).exists())

    def test_catalog_only_menu_skips_ai(self):
        Recipe.objects.filter(menu=self.menu).update(is_from_database=True)

        _, mocked = self.validate()

        mocked.assert_not_awaited()
        self.assertEqual(ShoppingListItem.objects.count(), 6)

    def test_generation_error_leaves_menu_unvalidated(self):
        favorite = create_favorite(self.user, 'Ratatouille', [('Courgette', '2', 'Légumes')])
        claiming = create_favorite(self.user, 'Quiche Lorraine', QUICHE_INGREDIENTS, description='La quiche de mamie')
        dishes_before = Dish.objects.count()

        with patch('menus.services.ai_service.generate_shopping_list', new_callable=AsyncMock) as mocked:
            mocked.side_effect = GenerationError("quota dépassé")
            with self.assertRaises(GenerationError):
                menu_service.validate_menu(self.user, self.menu.id, [favorite.id])

        self.assertFalse(ShoppingList.objects.filter(menu=self.menu).exists())
        self.assertFalse(Recipe.objects.filter(menu=self.menu, title='Ratatouille').exists())
        quiche = Recipe.objects.get(id=self.quiche.id)
        self.assertFalse(quiche.is_from_database)
        self.assertIsNone(quiche.dish_id)
        self.assertEqual(quiche.description, '')
        self.assertEqual(Dish.objects.count(), dishes_before)

        # La validation relancée n'ajoute le favori qu'une fois
        result, _ = self.validate(favorite_ids=[favorite.id])

        self.assertTrue(result['is_validated'])
        self.assertEqual(Recipe.objects.filter(menu=self.menu, title='Ratatouille').count(), 1)
        self.assertEqual(Recipe.objects.get(id=self.quiche.id).original_dish_id, claiming.id)
        self.assertEqual(Recipe.objects.filter(menu=self.menu).count(), 3)

    def test_menu_still_generating_is_rejected(self):
        Menu.objects.filter(id=self.menu.id).update(status=Menu.STATUS_GENERATING)
        favorite = create_favorite(self.user, 'Ratatouille', [('Courgette', '2', 'Légumes')])

        with self.assertRaises(MenuStateError):
            self.validate(favorite_ids=[favorite.id])

        self.assertFalse(ShoppingList.objects.filter(menu=self.menu).exists())
        self.assertFalse(Recipe.objects.filter(menu=self.menu, title='Ratatouille').exists())
        self.assertIsNone(Recipe.objects.get(id=self.quiche.id).dish_id)

    def test_detailed_recipes_scheduled_after_commit(self):
        Recipe.objects.filter(id=self.poulet.id).update(detailed_recipe='Déjà rédigée')

        with patch('menus.tasks.generate_detailed_recipes_task.delay') as delay:
            with self.captureOnCommitCallbacks(execute=True):
                self.validate()

        delay.assert_called_once_with(self.menu.id, [self.quiche.id])

    def test_foreign_menu_is_not_found(self):
        with self.assertRaises(MenuNotFoundError):
            self.validate(user=create_user('stranger'))

    def test_family_partner_can_validate(self):
        partner = create_user('partner')
        FamilyLink.objects.create(user1=self.user, user2=partner)

        result, _ = self.validate(user=partner)

        self.assertTrue(result['is_validated'])

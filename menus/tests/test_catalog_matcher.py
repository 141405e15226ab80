from types import SimpleNamespace

from django.test import SimpleTestCase

from menus.services.catalog_matcher import (
    find_duplicate,
    ingredients_match,
    normalize_ingredients,
    normalize_title,
)


def entry(entry_id, title, ingredients):
    return SimpleNamespace(
        id=entry_id,
        title=title,
        ingredients=[SimpleNamespace(name=name, quantity=quantity, category='') for name, quantity in ingredients],
    )


class CatalogMatcherTestCase(SimpleTestCase):
    def setUp(self):
        self.ingredients = [('Poulet', '4 cuisses'), ('Poivron', '2'), ('Tomate', '400 g')]

    def test_normalize_title_trims_and_lowercases(self):
        self.assertEqual(normalize_title(' Poulet Basquaise '), 'poulet basquaise')
        self.assertEqual(normalize_title(None), '')

    def test_normalize_ingredients_accepts_dicts_tuples_and_objects(self):
        expected = [('poivron', '2'), ('tomate', '400 g')]
        self.assertEqual(normalize_ingredients([('Tomate ', '400 g'), ('poivron', '2')]), expected)
        self.assertEqual(
            normalize_ingredients([{'name': 'Tomate', 'quantity': '400 G '}, {'name': 'Poivron', 'quantity': '2'}]),
            expected,
        )
        self.assertEqual(
            normalize_ingredients([SimpleNamespace(name='TOMATE', quantity='400 g'), SimpleNamespace(name='Poivron', quantity='2')]),
            expected,
        )

    def test_match_is_order_independent(self):
        pool = [entry(1, 'Poulet basquaise', self.ingredients)]
        shuffled = list(reversed(self.ingredients))
        self.assertIs(find_duplicate('Poulet basquaise', shuffled, pool), pool[0])
        self.assertTrue(ingredients_match(self.ingredients, shuffled))
        self.assertTrue(ingredients_match(shuffled, self.ingredients))

    def test_extra_ingredient_never_matches(self):
        pool = [entry(1, 'Poulet basquaise', self.ingredients)]
        candidate = self.ingredients + [('Oignon', '1')]
        self.assertIsNone(find_duplicate('Poulet basquaise', candidate, pool))
        self.assertFalse(ingredients_match(candidate, self.ingredients))

    def test_duplicate_ingredient_counts_as_multiset(self):
        self.assertFalse(ingredients_match([('Oeuf', '1'), ('Oeuf', '1')], [('Oeuf', '1'), ('Lait', '1')]))
        self.assertTrue(ingredients_match([('Oeuf', '1'), ('Oeuf', '1')], [('oeuf', '1'), ('OEUF ', '1')]))

    def test_case_and_whitespace_insensitive(self):
        pool = [entry(1, 'poulet basquaise', [('tomate', '400 g')])]
        match = find_duplicate(' Poulet Basquaise ', [('Tomate ', ' 400 g')], pool)
        self.assertIs(match, pool[0])

    def test_category_is_not_compared(self):
        pool = [entry(1, 'Salade', [('Laitue', '1')])]
        candidate = [{'name': 'Laitue', 'quantity': '1', 'category': 'Légumes'}]
        self.assertIs(find_duplicate('Salade', candidate, pool), pool[0])

    def test_different_quantity_does_not_match(self):
        pool = [entry(1, 'Salade', [('Laitue', '1')])]
        self.assertIsNone(find_duplicate('Salade', [('Laitue', '2')], pool))

    def test_different_title_does_not_match(self):
        pool = [entry(1, 'Salade niçoise', [('Laitue', '1')])]
        self.assertIsNone(find_duplicate('Salade', [('Laitue', '1')], pool))

    def test_exclude_id_skips_entry(self):
        pool = [entry(1, 'Salade', [('Laitue', '1')]), entry(2, 'Salade', [('Laitue', '1')])]
        self.assertEqual(find_duplicate('Salade', [('Laitue', '1')], pool, exclude_id=1).id, 2)
        self.assertIsNone(find_duplicate('Salade', [('Laitue', '1')], pool[:1], exclude_id=1))

    def test_first_match_in_pool_order_wins(self):
        pool = [entry(7, 'Salade', [('Laitue', '1')]), entry(3, 'Salade', [('Laitue', '1')])]
        self.assertEqual(find_duplicate('Salade', [('Laitue', '1')], pool).id, 7)

    def test_custom_ingredient_accessor(self):
        pool = [{'id': 5, 'title': 'Soupe', 'lines': [('Potiron', '1 kg')]}]
        match = find_duplicate('Soupe', [('potiron', '1 kg')], pool, get_ingredients=lambda item: item['lines'])
        self.assertEqual(match['id'], 5)

    def test_empty_ingredient_lists_match_on_title(self):
        pool = [entry(1, 'Pain', [])]
        self.assertIs(find_duplicate('pain', [], pool), pool[0])

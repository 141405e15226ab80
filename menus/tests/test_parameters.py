from datetime import date

from django.test import SimpleTestCase

from menus.services.exceptions import InvalidParametersError
from menus.services.parameters import (
    LegacyMenuParameters,
    MenuParameters,
    default_parameters,
    migrate_legacy,
    next_monday,
    parse_parameters,
    serialize_for_settings,
)


class NextMondayTestCase(SimpleTestCase):
    def test_monday_is_kept(self):
        self.assertEqual(next_monday(date(2025, 1, 6)), date(2025, 1, 6))

    def test_other_days_move_to_following_monday(self):
        self.assertEqual(next_monday(date(2025, 1, 7)), date(2025, 1, 13))
        self.assertEqual(next_monday(date(2025, 1, 12)), date(2025, 1, 13))


class ParseParametersTestCase(SimpleTestCase):
    def test_none_returns_defaults(self):
        parameters = parse_parameters(None)
        self.assertEqual(len(parameters.configurations), 1)
        self.assertEqual(parameters.configurations[0].number_of_dishes, 5)
        self.assertEqual(parameters.configurations[0].servings, 2)
        self.assertEqual(parameters.week_start_date.weekday(), 0)

    def test_current_shape_is_parsed(self):
        parameters = parse_parameters({
            'week_start_date': '2025-01-06',
            'configurations': [
                {'number_of_dishes': 3, 'servings': 4, 'name': 'Semaine'},
                {'number_of_dishes': 2, 'servings': 2, 'parameters': {'banned_foods': ['porc']}},
            ],
        })
        self.assertIsInstance(parameters, MenuParameters)
        self.assertEqual(parameters.total_dishes, 5)
        self.assertEqual(parameters.configurations[1].parameters.banned_foods, ['porc'])

    def test_legacy_shape_is_migrated(self):
        parameters = parse_parameters({
            'week_start_date': '2025-01-06',
            'number_of_dishes': [
                {'number_of_dishes': 4, 'servings': 2},
                {'number_of_dishes': 2, 'servings': 6},
            ],
            'banned_foods': ['champignons'],
            'desired_foods': [{'food': 'saumon', 'weight': 2}],
            'max_preparation_time': '00:45:00',
            'min_kcal_per_dish': 300,
            'max_kcal_per_dish': 700,
            'seasonal_foods': False,
        })
        self.assertEqual(parameters.version, 2)
        self.assertFalse(parameters.seasonal_foods)
        self.assertEqual([c.number_of_dishes for c in parameters.configurations], [4, 2])
        self.assertEqual([c.servings for c in parameters.configurations], [2, 6])
        for configuration in parameters.configurations:
            self.assertEqual(configuration.parameters.banned_foods, ['champignons'])
            self.assertEqual(configuration.parameters.desired_foods[0].food, 'saumon')
            self.assertEqual(configuration.parameters.max_preparation_time, 45)
            self.assertEqual(configuration.parameters.max_kcal_per_dish, 700)

    def test_legacy_constraints_are_copied_per_group(self):
        parameters = migrate_legacy(LegacyMenuParameters(
            number_of_dishes=[{'number_of_dishes': 1, 'servings': 1}, {'number_of_dishes': 1, 'servings': 1}],
            banned_foods=['ail'],
        ))
        first, second = parameters.configurations
        first.parameters.banned_foods.append('oignon')
        self.assertEqual(second.parameters.banned_foods, ['ail'])

    def test_legacy_without_entries_gets_default_group(self):
        parameters = parse_parameters({'version': 1, 'week_start_date': '2025-01-06'})
        self.assertEqual(len(parameters.configurations), 1)
        self.assertEqual(parameters.total_dishes, 5)

    def test_explicit_version_wins(self):
        parameters = parse_parameters({'version': 2, 'configurations': []})
        self.assertEqual(parameters.configurations, [])

    def test_unknown_version_is_rejected(self):
        with self.assertRaises(InvalidParametersError):
            parse_parameters({'version': 9})

    def test_non_dict_is_rejected(self):
        with self.assertRaises(InvalidParametersError):
            parse_parameters(['not', 'a', 'dict'])

    def test_group_bounds_are_validated(self):
        with self.assertRaises(InvalidParametersError):
            parse_parameters({'configurations': [{'number_of_dishes': 21}]})
        with self.assertRaises(InvalidParametersError):
            parse_parameters({'configurations': [{'servings': 0}]})

    def test_time_and_kcal_constraints_are_validated(self):
        with self.assertRaises(InvalidParametersError):
            parse_parameters({'configurations': [{'parameters': {'max_cooking_time': 0}}]})
        with self.assertRaises(InvalidParametersError):
            parse_parameters({'configurations': [{'parameters': {'min_kcal_per_dish': -1}}]})
        with self.assertRaises(InvalidParametersError):
            parse_parameters({'configurations': [{'parameters': {'min_kcal_per_dish': 800, 'max_kcal_per_dish': 400}}]})

    def test_settings_payload_has_no_week_start_date(self):
        payload = serialize_for_settings(default_parameters(date(2025, 1, 8)))
        self.assertIsNone(payload['week_start_date'])
        self.assertEqual(payload['version'], 2)
        self.assertEqual(parse_parameters(payload).total_dishes, 5)

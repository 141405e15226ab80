from django.test import SimpleTestCase

from menus.services.ai_service import build_replacement_prompt
from menus.services.parameters import parse_parameters

PARAMETERS = {
    'configurations': [
        {'number_of_dishes': 3, 'servings': 2, 'parameters': {'banned_foods': ['Céleri']}},
        {'number_of_dishes': 2, 'servings': 4, 'parameters': {'banned_foods': ['Porc'], 'max_cooking_time': 45}},
    ],
}


class ReplacementPromptTestCase(SimpleTestCase):
    def test_constraints_come_from_the_recipe_group(self):
        prompt = build_replacement_prompt(
            parse_parameters(PARAMETERS), 'Quiche Lorraine', 'Quiche aux lardons', 4, ['Poulet Basquaise', ''],
        )

        self.assertIn("remplacer : Quiche Lorraine", prompt)
        self.assertIn("Description actuelle : Quiche aux lardons", prompt)
        self.assertIn("Aliments interdits : Porc", prompt)
        self.assertNotIn("Céleri", prompt)
        self.assertIn("Temps de cuisson maximum : 45 minutes", prompt)
        self.assertIn("(à ne pas reproposer) : Poulet Basquaise\n", prompt)
        self.assertIn("prévue pour 4 personne(s)", prompt)
        # La ligne de groupe ("N plat(s) pour ...") n'a pas de sens pour un seul plat
        self.assertNotIn("plat(s) pour", prompt)

    def test_unknown_servings_fall_back_to_first_group(self):
        prompt = build_replacement_prompt(parse_parameters(PARAMETERS), 'Gratin', '', 6)

        self.assertIn("Aliments interdits : Céleri", prompt)
        self.assertNotIn("à ne pas reproposer", prompt)

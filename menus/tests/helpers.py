from django.contrib.auth import get_user_model

from menus.models import Dish, DishIngredient, Favorite, FavoriteIngredient, Menu, Recipe, RecipeIngredient
from menus.services.pydantic_models import GeneratedIngredient, GeneratedMenu, GeneratedRecipe

POULET_INGREDIENTS = [('Poulet', '4 cuisses', 'Viandes'), ('Poivron', '2', 'Légumes'), ('Tomate', '400 g', 'Légumes')]
QUICHE_INGREDIENTS = [('Pâte brisée', '1', 'Épicerie'), ('Lardons', '200 g', 'Viandes'), ('Oeuf', '3', 'Produits laitiers')]

PARAMETERS = {
    'week_start_date': '2025-01-06',
    'configurations': [{'number_of_dishes': 2, 'servings': 4}],
}


def create_user(name):
    return get_user_model().objects.create_user(
        username=name,
        email=f'{name}@example.com',
        password='password123',
    )


def generated_recipe(title, ingredients, servings=4):
    return GeneratedRecipe(
        title=title,
        description=f'{title} maison',
        preparation_time=20,
        cooking_time=40,
        kcal=550,
        servings=servings,
        ingredients=[GeneratedIngredient(name=name, quantity=quantity, category=category) for name, quantity, category in ingredients],
    )


def generated_menu(*recipes):
    return GeneratedMenu(recipes=list(recipes))


def default_generated_menu():
    return generated_menu(
        generated_recipe('Poulet Basquaise', POULET_INGREDIENTS),
        generated_recipe('Quiche Lorraine', QUICHE_INGREDIENTS),
    )


def create_dish(title, ingredients, **fields):
    dish = Dish.objects.create(title=title, description=fields.pop('description', ''), **fields)
    for name, quantity, category in ingredients:
        DishIngredient.objects.create(dish=dish, name=name, quantity=quantity, category=category)
    return dish


def create_favorite(user, title, ingredients, **fields):
    favorite = Favorite.objects.create(user=user, title=title, description=fields.pop('description', ''), **fields)
    for name, quantity, category in ingredients:
        FavoriteIngredient.objects.create(favorite=favorite, name=name, quantity=quantity, category=category)
    return favorite


def create_recipe(menu, title, ingredients, **fields):
    recipe = Recipe.objects.create(menu=menu, title=title, description=fields.pop('description', ''), **fields)
    for name, quantity, category in ingredients:
        RecipeIngredient.objects.create(recipe=recipe, name=name, quantity=quantity, category=category)
    return recipe


def create_menu(user, **fields):
    fields.setdefault('week_start_date', '2025-01-06')
    return Menu.objects.create(user=user, **fields)

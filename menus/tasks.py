import logging
import asyncio
import nest_asyncio

# Permettre les boucles asyncio imbriquées (nécessaire pour Celery)
nest_asyncio.apply()

from celery import group, shared_task

from .models import Recipe
from .services import ai_service
from .services.cache import invalidate_menu_caches
from .services.menu_service import complete_menu_generation, handle_generation_failure
from .services.user_access import get_accessible_user_ids

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def complete_menu_generation_task(self, menu_id: int, parameters: dict, recipe_ids: list, user_id: int):
    """
    Fin de génération d'un menu dans le worker.

    Aucune exception ne sort de la tâche : tout échec passe par le nettoyage
    et l'événement MenuGenerationError.
    """
    logger.info("[MenuGenerationTask] Génération du menu %s (user=%s)", menu_id, user_id)
    try:
        complete_menu_generation(menu_id, parameters, recipe_ids, user_id)
    except Exception as exc:
        logger.exception("[MenuGenerationTask] Menu %s en échec: %s", menu_id, exc)
        handle_generation_failure(menu_id)


@shared_task
def generate_detailed_recipes_task(menu_id: int, recipe_ids: list):
    """Une tâche par recette, exécutées en parallèle par les workers"""
    if not recipe_ids:
        return
    logger.info("[DetailedRecipeTask] Menu %s : %d recette(s) détaillée(s) planifiée(s)", menu_id, len(recipe_ids))
    group(generate_detailed_recipe_task.s(menu_id, recipe_id) for recipe_id in recipe_ids).apply_async()


@shared_task
def generate_detailed_recipe_task(menu_id: int, recipe_id: int):
    recipe = Recipe.objects.select_related('menu').prefetch_related('ingredients').filter(id=recipe_id).first()
    if recipe is None:
        logger.warning("[DetailedRecipeTask] Recette %s introuvable", recipe_id)
        return
    if recipe.detailed_recipe:
        logger.info("[DetailedRecipeTask] Recette %s déjà détaillée, ignorée", recipe_id)
        return

    ingredients = [
        {'name': ingredient.name, 'quantity': ingredient.quantity}
        for ingredient in recipe.ingredients.all()
    ]
    try:
        detailed = asyncio.run(
            ai_service.generate_detailed_recipe(recipe.title, ingredients, recipe.description)
        )
        Recipe.objects.filter(id=recipe_id).update(detailed_recipe=detailed)
        if recipe.menu is not None:
            invalidate_menu_caches(get_accessible_user_ids(recipe.menu.user_id), menu_id)
    except Exception as exc:
        logger.exception("[DetailedRecipeTask] Recette %s en échec: %s", recipe_id, exc)
        return

    logger.info("[DetailedRecipeTask] Recette %s détaillée (%d caractères)", recipe_id, len(detailed))

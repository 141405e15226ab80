"""
Orchestration de la génération de menus

Cycle d'un menu :
1. `start_menu_generation` (requête HTTP) : purge des menus non validés,
   sauvegarde des paramètres, création du menu vide, planification de la suite
2. `complete_menu_generation` (worker Celery) : appel IA hors transaction,
   rapprochement catalogue, persistance en une transaction, notification
3. édition tant que le menu n'est pas validé : remplacement ou suppression
   d'une recette, ajout d'un favori
4. `validate_menu` : rattachement des favoris, liste de courses, recettes détaillées

Un menu sans liste de courses est "non validé" : il peut être supprimé à la
prochaine génération et n'est jamais mis en cache.
"""
import asyncio
import logging
from time import perf_counter
from typing import Iterable, List, Optional

from django.db import transaction
from django.db.models import Q

from ..models import (
    Dish,
    DishIngredient,
    Favorite,
    Menu,
    MenuSettings,
    Recipe,
    RecipeIngredient,
    ShoppingList,
    ShoppingListItem,
)
from ..serializers import MenuSerializer, ShoppingListSerializer
from . import ai_service
from .cache import (
    MENU_SETTINGS_TTL,
    MENU_TTL,
    MENUS_ALL_TTL,
    SHOPPING_LIST_TTL,
    cache_delete,
    cache_get,
    cache_set,
    invalidate_menu_caches,
    menu_key,
    menu_settings_key,
    menus_all_key,
    shopping_list_key,
)
from .catalog_matcher import find_duplicate
from .exceptions import (
    FavoriteNotFoundError,
    InvalidParametersError,
    MenuNotFoundError,
    MenuStateError,
    NotFoundError,
    RecipeNotFoundError,
)
from .notifications import MENU_GENERATED, MENU_GENERATION_ERROR, notify
from .parameters import MenuParameters, default_parameters, next_monday, parse_parameters, serialize_for_settings
from .transactions import run_in_transaction
from .user_access import get_accessible_user_ids

logger = logging.getLogger(__name__)

CONTENT_FIELDS = (
    'title', 'description', 'complete_description', 'detailed_recipe', 'image_url',
    'preparation_time', 'cooking_time', 'kcal', 'servings',
)


def _affected_user_ids(*user_ids) -> List[int]:
    """Utilisateurs dont le cache dépend d'une mutation (auteurs + partenaires famille)"""
    affected = set()
    for user_id in user_ids:
        affected.update(get_accessible_user_ids(user_id))
    return sorted(affected)


def _menu_queryset():
    return Menu.objects.prefetch_related('recipes__ingredients', 'shopping_lists')


def _load_menu(menu_id) -> Menu:
    return _menu_queryset().get(id=menu_id)


def serialize_menu(menu: Menu) -> dict:
    return dict(MenuSerializer(menu).data)


def _copy_content(source, target):
    for field in CONTENT_FIELDS:
        setattr(target, field, getattr(source, field))
    return target


def _copy_ingredients(ingredients: Iterable, model, **parent):
    model.objects.bulk_create([
        model(name=ingredient.name, quantity=ingredient.quantity or '', category=ingredient.category or '', **parent)
        for ingredient in ingredients
    ])


def _create_dish(source, ingredients, created_by_id=None) -> Dish:
    dish = _copy_content(source, Dish(created_by_id=created_by_id))
    dish.description = dish.description or ''
    dish.save()
    _copy_ingredients(ingredients, DishIngredient, dish=dish)
    return dish


def get_accessible_menu(user, menu_id) -> Menu:
    """Menu du demandeur ou de son partenaire famille ; sinon MenuNotFoundError (pas de fuite d'existence)"""
    menu = Menu.objects.filter(id=menu_id, user_id__in=get_accessible_user_ids(user.id)).first()
    if menu is None:
        raise MenuNotFoundError()
    return menu


# ---------------------------------------------------------------------------
# Génération
# ---------------------------------------------------------------------------

def start_menu_generation(user, parameters: MenuParameters, recipe_ids: Optional[List[int]] = None) -> Menu:
    """
    Crée le menu vide et planifie la génération en arrière-plan.

    Les recettes à reprendre sont résolues avant la purge des menus non
    validés : leurs ids (recettes accessibles au demandeur uniquement) sont
    transmis tels quels à la tâche. Purge, sauvegarde des paramètres et
    création du menu sont faites dans une seule transaction (rejouable).
    """
    parameters = parse_parameters(parameters)
    settings_payload = serialize_for_settings(parameters)
    requested_ids = list(dict.fromkeys(recipe_ids or []))
    accessible_ids = get_accessible_user_ids(user.id)

    def _start():
        reusable_ids = []
        if requested_ids:
            found = set(
                Recipe.objects.filter(id__in=requested_ids, menu__user_id__in=accessible_ids)
                .values_list('id', flat=True)
            )
            reusable_ids = [recipe_id for recipe_id in requested_ids if recipe_id in found]
        stale_menus = Menu.objects.filter(user=user, shopping_lists__isnull=True)
        stale_ids = list(stale_menus.values_list('id', flat=True))
        if stale_ids:
            Menu.objects.filter(id__in=stale_ids).delete()
        MenuSettings.objects.update_or_create(user=user, defaults={'parameters': settings_payload})
        menu = Menu.objects.create(
            user=user,
            week_start_date=parameters.week_start_date,
            status=Menu.STATUS_GENERATING,
        )
        return menu, stale_ids, reusable_ids

    menu, stale_ids, reusable_ids = run_in_transaction(_start)

    ignored = len(requested_ids) - len(reusable_ids)
    if ignored:
        logger.warning("[MenuGeneration] %d recette(s) à reprendre ignorée(s) pour user=%s (introuvables)", ignored, user.id)

    user_ids = _affected_user_ids(user.id)
    invalidate_menu_caches(user_ids)
    for stale_id in stale_ids:
        invalidate_menu_caches(user_ids, stale_id)
    cache_delete(menu_settings_key(user.id))

    logger.info(
        "[MenuGeneration] Menu %s créé pour user=%s (%d plat(s) demandés, %d reprise(s), %d menu(s) non validé(s) supprimé(s))",
        menu.id,
        user.id,
        parameters.total_dishes,
        len(reusable_ids),
        len(stale_ids),
    )

    from ..tasks import complete_menu_generation_task

    task_args = (menu.id, parameters.model_dump(mode='json'), reusable_ids, user.id)
    transaction.on_commit(lambda: complete_menu_generation_task.delay(*task_args))
    return menu


def _clone_recipes(menu: Menu, recipe_ids: List[int]) -> int:
    """Copie les recettes `recipe_ids` (déjà contrôlées au lancement) dans `menu`"""
    sources = Recipe.objects.filter(id__in=recipe_ids).prefetch_related('ingredients')
    cloned = 0
    for source in sources:
        provenance = source.original_dish_id if source.is_from_database and source.original_dish_id else source.id
        recipe = _copy_content(source, Recipe(
            menu=menu,
            dish_id=source.dish_id,
            is_from_database=True,
            original_dish_id=provenance,
        ))
        recipe.save()
        _copy_ingredients(source.ingredients.all(), RecipeIngredient, recipe=recipe)
        cloned += 1
    return cloned


def _save_generated_recipe(menu: Menu, candidate, pool: List[Dish], favorites: List[Favorite], user_id) -> tuple:
    """
    Enregistre une recette générée : plat du catalogue, sinon favori, sinon nouveau plat.

    Le plat créé est ajouté à `pool`. Renvoie (recette, plat créé ou non).
    """
    recipe = Recipe(
        menu=menu,
        title=candidate.title,
        description=candidate.description or '',
        preparation_time=candidate.preparation_time,
        cooking_time=candidate.cooking_time,
        kcal=candidate.kcal,
        servings=candidate.servings,
    )
    created = False
    dish = find_duplicate(candidate.title, candidate.ingredients, pool)
    if dish is not None:
        # Le contenu reste celui généré : seul l'emplacement catalogue est partagé
        recipe.dish = dish
        recipe.original_dish_id = dish.id
    else:
        favorite = find_duplicate(candidate.title, candidate.ingredients, favorites)
        if favorite is not None:
            recipe.is_from_database = True
            recipe.original_dish_id = favorite.id
        else:
            dish = _create_dish(recipe, candidate.ingredients, created_by_id=user_id)
            pool.append(dish)
            created = True
            recipe.dish = dish
            recipe.original_dish_id = dish.id
    recipe.save()
    _copy_ingredients(candidate.ingredients, RecipeIngredient, recipe=recipe)
    return recipe, created


def complete_menu_generation(menu_id, parameters, recipe_ids, user_id):
    """
    Génère puis enregistre les recettes du menu `menu_id`.

    L'appel IA se fait hors transaction. Le rapprochement se fait sur un
    instantané local des plats (+ plats créés pendant l'appel) et des favoris
    de l'utilisateur. Toute erreur est propagée : l'appelant décide du nettoyage.
    """
    parameters = parse_parameters(parameters)
    t0 = perf_counter()

    generated = asyncio.run(ai_service.generate_menu(parameters))
    if len(generated.recipes) != parameters.total_dishes:
        logger.warning(
            "[MenuGeneration] Menu %s : %d recette(s) générée(s) pour %d demandée(s)",
            menu_id,
            len(generated.recipes),
            parameters.total_dishes,
        )

    dishes = list(Dish.objects.prefetch_related('ingredients'))
    favorites = list(Favorite.objects.filter(user_id=user_id).prefetch_related('ingredients'))

    def _persist():
        menu = Menu.objects.filter(id=menu_id).first()
        if menu is None:
            raise MenuNotFoundError(f"Menu {menu_id} introuvable pendant la génération")

        pool = list(dishes)
        created_dishes = 0
        reused = _clone_recipes(menu, recipe_ids) if recipe_ids else 0

        for candidate in generated.recipes:
            _, created = _save_generated_recipe(menu, candidate, pool, favorites, user_id)
            created_dishes += int(created)

        menu.status = Menu.STATUS_READY
        menu.save(update_fields=['status'])
        return reused, created_dishes

    reused, created_dishes = run_in_transaction(_persist)

    invalidate_menu_caches(_affected_user_ids(user_id), menu_id)
    payload = serialize_menu(_load_menu(menu_id))
    notify(menu_id, MENU_GENERATED, payload)

    logger.info(
        "[MenuGeneration] Menu %s terminé en %.2fs (%d recette(s) générée(s), %d reprise(s), %d plat(s) créé(s))",
        menu_id,
        perf_counter() - t0,
        len(generated.recipes),
        reused,
        created_dishes,
    )
    return payload


def handle_generation_failure(menu_id):
    """
    Nettoyage après échec : le menu vide est supprimé, un menu avec des recettes est conservé.

    L'événement MenuGenerationError est publié dans tous les cas ; rien n'est relevé.
    """
    try:
        menu = Menu.objects.filter(id=menu_id).first()
        if menu is None:
            logger.warning("[MenuGeneration] Menu %s déjà absent lors du nettoyage", menu_id)
        elif not menu.recipes.exists():
            owner_id = menu.user_id
            run_in_transaction(menu.delete)
            invalidate_menu_caches(_affected_user_ids(owner_id), menu_id)
            logger.info("[MenuGeneration] Menu vide %s supprimé après échec", menu_id)
        else:
            logger.warning(
                "[MenuGeneration] Menu %s conservé après échec : des recettes y sont déjà rattachées",
                menu_id,
            )
    except Exception:
        logger.exception("[MenuGeneration] Nettoyage impossible pour le menu %s", menu_id)

    try:
        notify(menu_id, MENU_GENERATION_ERROR, {'menu_id': menu_id})
    except Exception:
        logger.exception("[MenuGeneration] Notification d'erreur impossible pour le menu %s", menu_id)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _apply_favorite(recipe: Recipe, favorite: Favorite):
    """Le favori "revendique" la recette : son contenu remplace celui généré"""
    for field in ('description', 'complete_description', 'preparation_time', 'cooking_time', 'kcal'):
        setattr(recipe, field, getattr(favorite, field))
    if favorite.detailed_recipe:
        recipe.detailed_recipe = favorite.detailed_recipe
    if favorite.image_url:
        recipe.image_url = favorite.image_url
    recipe.description = recipe.description or ''
    recipe.is_from_database = True
    recipe.original_dish_id = favorite.id
    recipe.save()
    RecipeIngredient.objects.filter(recipe=recipe).delete()
    _copy_ingredients(favorite.ingredients.all(), RecipeIngredient, recipe=recipe)


def _recipe_from_favorite(menu: Menu, favorite: Favorite) -> Recipe:
    recipe = _copy_content(favorite, Recipe(menu=menu, is_from_database=True, original_dish_id=favorite.id))
    recipe.save()
    _copy_ingredients(favorite.ingredients.all(), RecipeIngredient, recipe=recipe)
    return recipe


def ensure_dishes_for_menu(menu: Menu, user) -> int:
    """
    Rattache chaque recette du menu à un plat du catalogue (existant ou créé).

    Idempotent : les recettes déjà rattachées sont ignorées. Renvoie le nombre de plats créés.
    """
    recipes = list(Recipe.objects.filter(menu=menu, dish__isnull=True).prefetch_related('ingredients'))
    if not recipes:
        return 0

    pool = list(Dish.objects.prefetch_related('ingredients'))
    created = 0
    for recipe in recipes:
        ingredients = list(recipe.ingredients.all())
        dish = find_duplicate(recipe.title, ingredients, pool)
        if dish is None:
            dish = _create_dish(recipe, ingredients, created_by_id=user.id)
            pool.append(dish)
            created += 1
        recipe.dish = dish
        if recipe.original_dish_id is None:
            recipe.original_dish_id = dish.id
        recipe.save(update_fields=['dish', 'original_dish_id'])

    logger.info("[MenuValidation] Menu %s : %d recette(s) rattachée(s), %d plat(s) créé(s)", menu.id, len(recipes), created)
    return created


def _ingredient_dicts(ingredients) -> List[dict]:
    return [{'name': ingredient.name, 'quantity': ingredient.quantity} for ingredient in ingredients]


def validate_menu(user, menu_id, favorite_ids: Optional[List[int]] = None) -> dict:
    """
    Valide le menu : favoris, plats catalogue, liste de courses, recettes détaillées.

    Sans effet si le menu a déjà une liste de courses ; MenuStateError si sa
    génération n'est pas terminée. Le rapprochement avec les favoris est
    calculé en mémoire, l'appel IA (liste de courses) est fait ensuite, puis
    tout est écrit en une seule transaction : un échec de l'appel IA ne laisse
    aucune trace et la validation peut être relancée.
    """
    menu = get_accessible_menu(user, menu_id)
    if ShoppingList.objects.filter(menu=menu).exists():
        logger.info("[MenuValidation] Menu %s déjà validé, rien à faire", menu.id)
        return serialize_menu(_load_menu(menu.id))
    if menu.status == Menu.STATUS_GENERATING:
        raise MenuStateError("Le menu est encore en cours de génération")

    t0 = perf_counter()
    favorites = list(Favorite.objects.filter(user=user).prefetch_related('ingredients'))
    requested_ids = list(dict.fromkeys(favorite_ids or []))
    favorites_by_id = {favorite.id: favorite for favorite in favorites}
    missing = [favorite_id for favorite_id in requested_ids if favorite_id not in favorites_by_id]
    if missing:
        raise FavoriteNotFoundError(f"Favori(s) introuvable(s) : {', '.join(str(i) for i in missing)}")
    requested = [favorites_by_id[favorite_id] for favorite_id in requested_ids]

    recipes = list(Recipe.objects.filter(menu=menu).prefetch_related('ingredients'))
    claims = []
    catalog_items = []
    to_generate = []
    for recipe in recipes:
        if recipe.is_from_database:
            catalog_items.extend(recipe.ingredients.all())
            continue
        favorite = find_duplicate(recipe.title, recipe.ingredients.all(), favorites)
        if favorite is not None:
            claims.append((recipe, favorite))
            catalog_items.extend(favorite.ingredients.all())
        else:
            to_generate.append({
                'title': recipe.title,
                'servings': recipe.servings,
                'ingredients': _ingredient_dicts(recipe.ingredients.all()),
            })
    for favorite in requested:
        catalog_items.extend(favorite.ingredients.all())

    generated_items = []
    if to_generate:
        generated_items = asyncio.run(ai_service.generate_shopping_list(to_generate)).items

    def _persist():
        if ShoppingList.objects.filter(menu=menu).exists():
            return None
        for recipe, favorite in claims:
            _apply_favorite(recipe, favorite)
        for favorite in requested:
            _recipe_from_favorite(menu, favorite)
        ensure_dishes_for_menu(menu, user)
        shopping_list = ShoppingList.objects.create(menu=menu)
        _copy_ingredients(list(catalog_items) + list(generated_items), ShoppingListItem, shopping_list=shopping_list)
        return shopping_list

    shopping_list = run_in_transaction(_persist)
    invalidate_menu_caches(_affected_user_ids(user.id, menu.user_id), menu.id)

    if shopping_list is not None:
        pending_ids = list(
            Recipe.objects.filter(menu=menu)
            .filter(Q(detailed_recipe__isnull=True) | Q(detailed_recipe=''))
            .values_list('id', flat=True)
        )
        _schedule_detailed_recipes(menu.id, pending_ids)
        logger.info(
            "[MenuValidation] Menu %s validé en %.2fs (%d favori(s) rattaché(s), %d ajouté(s), "
            "%d article(s), %d recette(s) détaillée(s) à générer)",
            menu.id,
            perf_counter() - t0,
            len(claims),
            len(requested),
            len(catalog_items) + len(generated_items),
            len(pending_ids),
        )

    return serialize_menu(_load_menu(menu.id))


def _schedule_detailed_recipes(menu_id, recipe_ids: List[int]):
    if not recipe_ids:
        return
    from ..tasks import generate_detailed_recipes_task

    recipe_ids = sorted(recipe_ids)
    transaction.on_commit(lambda: generate_detailed_recipes_task.delay(menu_id, recipe_ids))


# ---------------------------------------------------------------------------
# Lecture
# ---------------------------------------------------------------------------

def get_menu(user, menu_id) -> dict:
    menu = get_accessible_menu(user, menu_id)
    key = menu_key(user.id, menu.id)
    cached = cache_get(key)
    if cached is not None:
        return cached

    payload = serialize_menu(_load_menu(menu.id))
    # Les menus en cours de génération sont toujours relus depuis la base
    if payload['is_validated']:
        cache_set(key, payload, MENU_TTL)
    return payload


def get_all_menus(user) -> List[dict]:
    """Menus validés du demandeur et de son partenaire famille, du plus récent au plus ancien"""
    key = menus_all_key(user.id)
    cached = cache_get(key)
    if cached is not None:
        return cached

    menus = _menu_queryset().filter(
        user_id__in=get_accessible_user_ids(user.id),
        shopping_lists__isnull=False,
    ).distinct().order_by('-created_at')
    payload = [serialize_menu(menu) for menu in menus]
    cache_set(key, payload, MENUS_ALL_TTL)
    return payload


def get_shopping_list(user, menu_id) -> dict:
    menu = get_accessible_menu(user, menu_id)
    key = shopping_list_key(user.id, menu.id)
    cached = cache_get(key)
    if cached is not None:
        return cached

    shopping_list = ShoppingList.objects.filter(menu=menu).prefetch_related('items').first()
    if shopping_list is None:
        raise NotFoundError("Liste de courses introuvable")
    payload = dict(ShoppingListSerializer(shopping_list).data)
    cache_set(key, payload, SHOPPING_LIST_TTL)
    return payload


def get_last_parameters(user) -> dict:
    """Derniers paramètres (format courant) avec le prochain lundi, ou les valeurs par défaut"""
    key = menu_settings_key(user.id)
    cached = cache_get(key)
    if cached is not None:
        return cached

    parameters = default_parameters()
    menu_settings = MenuSettings.objects.filter(user=user).first()
    if menu_settings is not None and menu_settings.parameters:
        try:
            parameters = parse_parameters(menu_settings.parameters)
        except InvalidParametersError as exc:
            logger.warning("[MenuSettings] Paramètres enregistrés illisibles pour user=%s: %s", user.id, exc)
        parameters.week_start_date = next_monday()

    payload = parameters.model_dump(mode='json')
    cache_set(key, payload, MENU_SETTINGS_TTL)
    return payload


# ---------------------------------------------------------------------------
# Mutations simples
# ---------------------------------------------------------------------------

def delete_menu(user, menu_id):
    menu = get_accessible_menu(user, menu_id)
    owner_id = menu.user_id
    run_in_transaction(menu.delete)
    invalidate_menu_caches(_affected_user_ids(user.id, owner_id), menu_id)
    logger.info("[Menu] Menu %s supprimé par user=%s", menu_id, user.id)


def set_recipe_cooked(user, recipe_id, is_cooked: bool) -> Recipe:
    recipe = Recipe.objects.select_related('menu').filter(
        id=recipe_id,
        menu__user_id__in=get_accessible_user_ids(user.id),
    ).first()
    if recipe is None:
        raise RecipeNotFoundError()

    recipe.is_cooked = is_cooked
    recipe.save(update_fields=['is_cooked'])
    invalidate_menu_caches(_affected_user_ids(user.id, recipe.menu.user_id), recipe.menu_id)
    return recipe


# ---------------------------------------------------------------------------
# Édition d'un menu non validé
# ---------------------------------------------------------------------------

def _get_editable_menu(user, menu_id) -> Menu:
    """Menu accessible, généré et sans liste de courses ; sinon MenuStateError"""
    menu = get_accessible_menu(user, menu_id)
    if menu.status == Menu.STATUS_GENERATING:
        raise MenuStateError("Le menu est encore en cours de génération")
    if ShoppingList.objects.filter(menu=menu).exists():
        raise MenuStateError("Le menu est déjà validé")
    return menu


def _get_menu_recipe(menu: Menu, recipe_id) -> Recipe:
    recipe = Recipe.objects.filter(id=recipe_id, menu=menu).prefetch_related('ingredients').first()
    if recipe is None:
        raise RecipeNotFoundError(f"Recette {recipe_id} introuvable dans le menu {menu.id}")
    return recipe


def _saved_parameters(user) -> MenuParameters:
    menu_settings = MenuSettings.objects.filter(user=user).first()
    if menu_settings is not None and menu_settings.parameters:
        try:
            return parse_parameters(menu_settings.parameters)
        except InvalidParametersError as exc:
            logger.warning("[MenuSettings] Paramètres enregistrés illisibles pour user=%s: %s", user.id, exc)
    return default_parameters()


def save_parameters(user, parameters: MenuParameters) -> MenuParameters:
    parameters = parse_parameters(parameters)
    MenuSettings.objects.update_or_create(user=user, defaults={'parameters': serialize_for_settings(parameters)})
    cache_delete(menu_settings_key(user.id))
    logger.info("[MenuSettings] Paramètres enregistrés pour user=%s", user.id)
    return parameters


def replace_recipe(user, menu_id, recipe_id, parameters: Optional[MenuParameters] = None) -> Recipe:
    """
    Remplace une recette du menu par une nouvelle proposition de l'IA.

    Contraintes : `parameters` s'ils sont fournis, sinon les derniers
    paramètres enregistrés. L'appel IA est fait hors transaction ; l'ancienne
    recette est supprimée et la nouvelle créée dans une seule transaction.
    """
    menu = _get_editable_menu(user, menu_id)
    recipe = _get_menu_recipe(menu, recipe_id)
    parameters = parse_parameters(parameters) if parameters is not None else _saved_parameters(user)
    other_titles = list(Recipe.objects.filter(menu=menu).exclude(id=recipe.id).values_list('title', flat=True))

    candidate = asyncio.run(ai_service.generate_replacement_recipe(
        parameters, recipe.title, recipe.description, recipe.servings, other_titles,
    ))
    # Le remplaçant reste dans le groupe de la recette d'origine
    if recipe.servings:
        candidate.servings = recipe.servings

    dishes = list(Dish.objects.prefetch_related('ingredients'))
    favorites = list(Favorite.objects.filter(user_id=menu.user_id).prefetch_related('ingredients'))

    def _replace():
        Recipe.objects.filter(id=recipe.id).delete()
        new_recipe, _ = _save_generated_recipe(menu, candidate, list(dishes), favorites, user.id)
        return new_recipe

    new_recipe = run_in_transaction(_replace)
    invalidate_menu_caches(_affected_user_ids(user.id, menu.user_id), menu.id)
    logger.info("[Menu] Menu %s : recette %s remplacée par %s ('%s')", menu.id, recipe_id, new_recipe.id, new_recipe.title)
    return Recipe.objects.prefetch_related('ingredients').get(id=new_recipe.id)


def delete_recipe(user, menu_id, recipe_id):
    menu = _get_editable_menu(user, menu_id)
    recipe = _get_menu_recipe(menu, recipe_id)
    run_in_transaction(recipe.delete)
    invalidate_menu_caches(_affected_user_ids(user.id, menu.user_id), menu.id)
    logger.info("[Menu] Menu %s : recette %s supprimée par user=%s", menu.id, recipe_id, user.id)


def add_favorite_to_menu(user, menu_id, favorite_id) -> Recipe:
    menu = _get_editable_menu(user, menu_id)
    favorite = Favorite.objects.filter(id=favorite_id, user=user).prefetch_related('ingredients').first()
    if favorite is None:
        raise FavoriteNotFoundError()

    recipe = run_in_transaction(_recipe_from_favorite, menu, favorite)
    invalidate_menu_caches(_affected_user_ids(user.id, menu.user_id), menu.id)
    logger.info("[Menu] Menu %s : favori %s ajouté (recette %s)", menu.id, favorite.id, recipe.id)
    return Recipe.objects.prefetch_related('ingredients').get(id=recipe.id)


def regenerate_detailed_recipes(user, menu_id) -> List[int]:
    """Relance la génération des recettes détaillées manquantes ; renvoie les ids planifiés"""
    menu = get_accessible_menu(user, menu_id)
    if menu.status == Menu.STATUS_GENERATING:
        raise MenuStateError("Le menu est encore en cours de génération")

    pending_ids = sorted(
        Recipe.objects.filter(menu=menu)
        .filter(Q(detailed_recipe__isnull=True) | Q(detailed_recipe=''))
        .values_list('id', flat=True)
    )
    _schedule_detailed_recipes(menu.id, pending_ids)
    logger.info("[Menu] Menu %s : %d recette(s) détaillée(s) replanifiée(s)", menu.id, len(pending_ids))
    return pending_ids

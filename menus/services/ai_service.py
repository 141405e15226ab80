"""
Service IA pour générer menus, listes de courses et recettes détaillées
avec PydanticAI et une intégration Google Gemini
"""
import logging
import os
import time
from typing import Iterable, List, Literal, Optional, cast

from django.conf import settings
from pydantic_ai import Agent
from pydantic_ai.models.google import GoogleModel, GoogleModelName

from .exceptions import GenerationError
from .parameters import DishConfiguration, MenuParameters
from .pydantic_models import GeneratedMenu, GeneratedRecipe, GeneratedShoppingList

logger = logging.getLogger(__name__)

GoogleProvider = Literal['google-gla', 'google-vertex', 'gateway']

DEFAULT_GOOGLE_PROVIDER: GoogleProvider = 'google-gla'
GOOGLE_PROVIDER_ALIASES: dict[str, GoogleProvider] = {
    'google': 'google-gla',
    'google-gla': 'google-gla',
    'gla': 'google-gla',
    'gemini': 'google-gla',
    'google-vertex': 'google-vertex',
    'vertex': 'google-vertex',
    'gateway': 'gateway',
}

MENU_SYSTEM_PROMPT = (
    "Tu es un expert en cuisine française qui génère des menus de la semaine. "
    "Tu proposes des plats variés, réalistes et adaptés aux contraintes données. "
    "Les temps sont exprimés en minutes, les quantités en texte libre (ex: '200 g', '2 pièces')."
)

SHOPPING_LIST_SYSTEM_PROMPT = (
    "Tu es un assistant qui prépare des listes de courses organisées par catégories "
    "(Légumes, Fruits, Viandes, Poissons, Produits laitiers, Épicerie, etc.). "
    "Regroupe les ingrédients similaires et additionne les quantités quand c'est pertinent."
)

DETAILED_RECIPE_SYSTEM_PROMPT = (
    "Tu es un chef cuisinier expert qui rédige des recettes détaillées et appétissantes en français."
)


def get_api_key() -> str:
    return getattr(settings, 'AI_API_KEY', '') or ''


def sanitize_model_string(name: str) -> str:
    """Nettoie la valeur AI_MODEL (espaces, commentaires inline)"""
    cleaned = (name or '').strip()
    if '#' in cleaned:
        cleaned = cleaned.split('#', 1)[0].strip()
    return cleaned


def set_google_env_from_api_key():
    """S'assure que les variables attendues par google-genai sont renseignées"""
    api_key = get_api_key()
    if api_key:
        os.environ.setdefault('GOOGLE_API_KEY', api_key)
        os.environ.setdefault('GEMINI_API_KEY', api_key)


def resolve_model(raw_model: str):
    """
    Construit le modèle Pydantic-AI approprié.
    - `gemini-...` ou `google:...` -> `GoogleModel`
    - Sinon fallback: laisser Pydantic gérer (OpenAI, Groq, etc.)
    """
    cleaned = sanitize_model_string(raw_model)
    if not cleaned:
        raise ValueError("AI_MODEL ne peut pas être vide.")

    provider_hint = None
    model_name = cleaned
    if ':' in cleaned:
        provider_hint, model_name = cleaned.split(':', 1)

    provider_key = (provider_hint or '').strip().lower()
    if not provider_key and cleaned.startswith('gemini-'):
        provider_key = 'google'

    if provider_key in GOOGLE_PROVIDER_ALIASES:
        provider = GOOGLE_PROVIDER_ALIASES[provider_key]
        model_name = model_name.strip().strip('\'"')
        if not model_name:
            raise ValueError("Nom de modèle Google invalide.")
        set_google_env_from_api_key()
        logger.info("[AI] Utilisation de GoogleModel '%s' via provider '%s'", model_name, provider)
        return GoogleModel(
            model_name=cast(GoogleModelName, model_name),
            provider=provider,
        )

    # Fallback: laisser pydantic-ai résoudre (ex: openai:gpt-4o)
    logger.info("[AI] Utilisation du modèle natif '%s'", cleaned)
    return cleaned


def create_agent(output_type, system_prompt: str) -> Agent:
    if not get_api_key():
        raise ValueError("AI_API_KEY doit être configuré dans .env")
    model = resolve_model(settings.AI_MODEL)
    return Agent(model=model, output_type=output_type, system_prompt=system_prompt)


def _format_minutes(minutes: Optional[int]) -> str:
    if minutes is None:
        return ''
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h{rest:02d}"
    if hours:
        return f"{hours}h"
    return f"{rest} minutes"


def _configuration_prompt_parts(index: int, configuration: DishConfiguration) -> List[str]:
    constraints = configuration.parameters
    label = configuration.name or f"Groupe {index}"
    parts = [f"\n{label} : {configuration.number_of_dishes} plat(s) pour {configuration.servings} personne(s)"]

    if constraints.dish_types:
        types = [
            f"{dish_type} ({count})" if count else dish_type
            for dish_type, count in constraints.dish_types.items()
        ]
        parts.append(f"- Types de plats : {', '.join(types)}")
    if constraints.banned_foods:
        parts.append(f"- Aliments interdits : {', '.join(constraints.banned_foods)}")
    if constraints.desired_foods:
        desired = [
            f"{item.food} (poids {item.weight})" if item.weight else item.food
            for item in constraints.desired_foods
        ]
        parts.append(f"- Aliments souhaités : {', '.join(desired)}")
    active_options = {
        option: weight for option, weight in constraints.weighted_options.items() if weight is not None
    }
    if active_options:
        options = [f"{option} {weight}%" for option, weight in active_options.items()]
        parts.append(f"- Répartition souhaitée : {', '.join(options)}")
    if constraints.max_preparation_time:
        parts.append(f"- Temps de préparation maximum : {_format_minutes(constraints.max_preparation_time)}")
    if constraints.max_cooking_time:
        parts.append(f"- Temps de cuisson maximum : {_format_minutes(constraints.max_cooking_time)}")
    if constraints.min_kcal_per_dish is not None:
        parts.append(f"- Calories minimum par portion : {constraints.min_kcal_per_dish} kcal")
    if constraints.max_kcal_per_dish is not None:
        parts.append(f"- Calories maximum par portion : {constraints.max_kcal_per_dish} kcal")
    return parts


def build_menu_prompt(parameters: MenuParameters) -> str:
    prompt_parts = [
        "Génère un menu de la semaine avec les paramètres suivants:",
    ]
    if parameters.week_start_date:
        prompt_parts.append(f"Date de début de semaine: {parameters.week_start_date.isoformat()}")

    prompt_parts.append(
        f"\nIMPORTANT: Tu DOIS générer EXACTEMENT {parameters.total_dishes} plat(s) dans ce batch."
    )
    for index, configuration in enumerate(parameters.configurations, start=1):
        prompt_parts.extend(_configuration_prompt_parts(index, configuration))

    if parameters.seasonal_foods:
        prompt_parts.append("\nPrivilégie les produits de saison pour cette période de l'année.")

    prompt_parts.append(
        "\nPour chaque plat, renseigne le nombre de personnes de son groupe, "
        "les ingrédients avec quantité et catégorie, et les temps en minutes."
    )
    return "\n".join(prompt_parts)


def build_shopping_list_prompt(recipes: Iterable[dict]) -> str:
    prompt_parts = ["Génère une liste de courses organisée par catégories à partir des recettes suivantes :"]
    for recipe in recipes:
        prompt_parts.append(f"\n{recipe['title']} ({recipe['servings']} personnes):")
        for ingredient in recipe['ingredients']:
            prompt_parts.append(f"- {ingredient['name']}: {ingredient['quantity']}")
    return "\n".join(prompt_parts)


def build_detailed_recipe_prompt(title: str, ingredients: Iterable[dict], description: str) -> str:
    ingredients_list = "\n".join(f"- {ingredient['name']}: {ingredient['quantity']}" for ingredient in ingredients)
    prompt_parts = [
        "Génère une recette complète et détaillée pour le plat suivant :",
        f"\nTitre : {title}",
        f"Description : {description or ''}",
        "\nIngrédients disponibles (liste COMPLÈTE et OBLIGATOIRE à utiliser) :",
        ingredients_list,
        "\nGénère une recette détaillée avec :",
        "1. Une introduction (2-3 phrases)",
        "2. Les étapes de préparation numérotées et détaillées",
        "3. Des conseils de cuisson si nécessaire",
        "4. Des suggestions de présentation",
        "\nIMPORTANT :",
        "- N'inclus PAS le titre du plat ni la liste des ingrédients, ils sont déjà affichés ailleurs.",
        "- Tu DOIS utiliser UNIQUEMENT les ingrédients listés ci-dessus.",
        "\nFormate la réponse en Markdown avec des titres (##, ###) et des listes numérotées.",
    ]
    return "\n".join(prompt_parts)


def _configuration_for_servings(parameters: MenuParameters, servings: Optional[int]) -> Optional[DishConfiguration]:
    for configuration in parameters.configurations:
        if configuration.servings == servings:
            return configuration
    return parameters.configurations[0] if parameters.configurations else None


def build_replacement_prompt(
    parameters: MenuParameters,
    title: str,
    description: str,
    servings: Optional[int],
    excluded_titles: Iterable[str] = (),
) -> str:
    prompt_parts = [
        f"Génère une nouvelle recette pour remplacer : {title}",
        f"Description actuelle : {description or ''}",
    ]
    configuration = _configuration_for_servings(parameters, servings)
    if configuration is not None:
        prompt_parts.append("\nContraintes du menu d'origine :")
        # La première ligne décrit le groupe entier, pas ce plat
        prompt_parts.extend(_configuration_prompt_parts(1, configuration)[1:])
    excluded = [excluded_title for excluded_title in excluded_titles if excluded_title]
    if excluded:
        prompt_parts.append(f"\nPlats déjà présents dans le menu (à ne pas reproposer) : {', '.join(excluded)}")
    if servings:
        prompt_parts.append(f"\nLa recette est prévue pour {servings} personne(s).")
    prompt_parts.append("\nIMPORTANT: Tu DOIS générer UNIQUEMENT UN SEUL plat, similaire mais différent.")
    return "\n".join(prompt_parts)


async def _run_agent(label: str, output_type, system_prompt: str, prompt: str):
    start_time = time.perf_counter()
    logger.info("[AI] %s lancé (len_prompt=%d chars)", label, len(prompt))
    try:
        agent = create_agent(output_type, system_prompt)
        result = await agent.run(prompt)
    except Exception as e:
        duration = time.perf_counter() - start_time
        logger.error("[AI] Erreur pendant %s (%.2fs): %s", label, duration, e)
        raise GenerationError(f"Échec de la génération ({label}) : {e}") from e

    duration = time.perf_counter() - start_time
    logger.info("[AI] %s terminé en %.2fs", label, duration)
    return result.output


async def generate_menu(parameters: MenuParameters) -> GeneratedMenu:
    """
    Génère un lot de recettes candidates pour le menu

    Args:
        parameters: Paramètres de génération (format courant)

    Returns:
        GeneratedMenu: Recettes proposées (le nombre peut différer de `parameters.total_dishes`)
    """
    menu = await _run_agent(
        'génération de menu', GeneratedMenu, MENU_SYSTEM_PROMPT, build_menu_prompt(parameters)
    )
    logger.info("[AI] Menu généré : %d recette(s)", len(menu.recipes))
    return menu


async def generate_shopping_list(recipes) -> GeneratedShoppingList:
    """Assemble la liste de courses ; `recipes` : dicts {title, servings, ingredients: [{name, quantity}]}"""
    shopping_list = await _run_agent(
        'génération de liste de courses',
        GeneratedShoppingList,
        SHOPPING_LIST_SYSTEM_PROMPT,
        build_shopping_list_prompt(recipes),
    )
    logger.info("[AI] Liste de courses générée : %d article(s)", len(shopping_list.items))
    return shopping_list


async def generate_detailed_recipe(title: str, ingredients, description: str) -> str:
    return await _run_agent(
        f"recette détaillée '{title}'",
        str,
        DETAILED_RECIPE_SYSTEM_PROMPT,
        build_detailed_recipe_prompt(title, ingredients, description),
    )


async def generate_replacement_recipe(
    parameters: MenuParameters,
    title: str,
    description: str,
    servings: Optional[int],
    excluded_titles: Iterable[str] = (),
) -> GeneratedRecipe:
    """Propose une recette de remplacement pour `title`, sous les contraintes de son groupe"""
    recipe = await _run_agent(
        f"remplacement de '{title}'",
        GeneratedRecipe,
        MENU_SYSTEM_PROMPT,
        build_replacement_prompt(parameters, title, description, servings, excluded_titles),
    )
    logger.info("[AI] '%s' remplacé par '%s'", title, recipe.title)
    return recipe

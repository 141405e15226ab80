"""
Détection de doublons entre une recette candidate et un catalogue (plats partagés ou favoris)

Deux entrées sont considérées identiques si :
- leurs titres normalisés (trim + minuscules) sont égaux
- leurs ingrédients sont égaux en tant que multi-ensembles de paires (nom, quantité) normalisées

L'ordre des ingrédients et leur catégorie ne comptent pas. Module pur : aucun accès base.
"""
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

IngredientKey = Tuple[str, str]


def _normalize_text(value: Optional[str]) -> str:
    return (value or '').strip().lower()


def normalize_title(title: Optional[str]) -> str:
    return _normalize_text(title)


def _ingredient_pair(ingredient: Any) -> IngredientKey:
    if isinstance(ingredient, dict):
        return ingredient.get('name'), ingredient.get('quantity')
    if isinstance(ingredient, (tuple, list)):
        name, quantity = ingredient[0], ingredient[1] if len(ingredient) > 1 else ''
        return name, quantity
    return getattr(ingredient, 'name', ''), getattr(ingredient, 'quantity', '')


def normalize_ingredients(ingredients: Iterable[Any]) -> List[IngredientKey]:
    """
    Normalise puis trie les ingrédients en paires (nom, quantité).

    Accepte des instances (attributs `name` / `quantity`), des dicts ou des tuples.
    """
    pairs = []
    for ingredient in ingredients or []:
        name, quantity = _ingredient_pair(ingredient)
        pairs.append((_normalize_text(name), _normalize_text(quantity)))
    pairs.sort()
    return pairs


def ingredients_match(first: Iterable[Any], second: Iterable[Any]) -> bool:
    first_pairs = normalize_ingredients(first)
    second_pairs = normalize_ingredients(second)
    if len(first_pairs) != len(second_pairs):
        return False
    return first_pairs == second_pairs


def default_get_ingredients(entry: Any) -> Sequence[Any]:
    ingredients = getattr(entry, 'ingredients', None)
    if ingredients is None and isinstance(entry, dict):
        return entry.get('ingredients', [])
    if hasattr(ingredients, 'all'):
        return list(ingredients.all())
    return ingredients or []


def _entry_id(entry: Any):
    if isinstance(entry, dict):
        return entry.get('id')
    return getattr(entry, 'id', None)


def _entry_title(entry: Any) -> str:
    if isinstance(entry, dict):
        return entry.get('title', '')
    return getattr(entry, 'title', '')


def find_duplicate(
    title: str,
    ingredients: Iterable[Any],
    pool: Iterable[Any],
    exclude_id: Optional[int] = None,
    get_ingredients: Callable[[Any], Sequence[Any]] = default_get_ingredients,
):
    """
    Renvoie la première entrée de `pool` identique au candidat, ou None.

    L'ordre de `pool` est celui de l'appelant : en cas de plusieurs entrées
    identiques, la première rencontrée l'emporte.
    """
    candidate_title = normalize_title(title)
    candidate_pairs = normalize_ingredients(ingredients)

    for entry in pool:
        if exclude_id is not None and _entry_id(entry) == exclude_id:
            continue
        if normalize_title(_entry_title(entry)) != candidate_title:
            continue
        entry_ingredients = list(get_ingredients(entry))
        if len(entry_ingredients) != len(candidate_pairs):
            continue
        if normalize_ingredients(entry_ingredients) == candidate_pairs:
            return entry
    return None

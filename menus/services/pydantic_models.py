"""
Modèles Pydantic de sortie des agents IA (menu, liste de courses)

Les longueurs maximales reprennent celles des colonnes : une sortie trop
longue est rejetée à la validation et l'agent est relancé.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

NAME_MAX_LENGTH = 200
QUANTITY_MAX_LENGTH = 100
CATEGORY_MAX_LENGTH = 100


class GeneratedIngredient(BaseModel):
    """Ingrédient d'une recette générée"""
    name: str = Field(..., max_length=NAME_MAX_LENGTH, description="Nom de l'ingrédient")
    quantity: str = Field(
        default='', max_length=QUANTITY_MAX_LENGTH,
        description="Quantité en texte libre (ex: '200 g', '2 pièces')",
    )
    category: str = Field(
        default='', max_length=CATEGORY_MAX_LENGTH,
        description="Catégorie de rayon (Légumes, Viandes, Épicerie...)",
    )


class GeneratedRecipe(BaseModel):
    """Recette proposée par l'IA pour le menu de la semaine"""
    title: str = Field(..., max_length=200, description="Titre du plat")
    description: str = Field(default='', description="Description courte (1-2 phrases)")
    preparation_time: Optional[int] = Field(None, ge=0, description="Temps de préparation en minutes")
    cooking_time: Optional[int] = Field(None, ge=0, description="Temps de cuisson en minutes")
    kcal: Optional[int] = Field(None, ge=0, description="Calories par portion")
    servings: int = Field(default=2, ge=1, description="Nombre de personnes")
    ingredients: List[GeneratedIngredient] = Field(default_factory=list)


class GeneratedMenu(BaseModel):
    recipes: List[GeneratedRecipe] = Field(default_factory=list)


class ShoppingListItemGenerated(BaseModel):
    name: str = Field(..., max_length=NAME_MAX_LENGTH, description="Nom de l'article")
    quantity: str = Field(default='', max_length=QUANTITY_MAX_LENGTH, description="Quantité totale regroupée")
    category: str = Field(default='', max_length=CATEGORY_MAX_LENGTH, description="Catégorie de rayon")


class GeneratedShoppingList(BaseModel):
    items: List[ShoppingListItemGenerated] = Field(default_factory=list)

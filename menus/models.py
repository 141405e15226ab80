from django.conf import settings
from django.db import models


class MenuSettings(models.Model):
    """Derniers paramètres de génération d'un utilisateur (format courant, sans date)"""
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='menu_settings'
    )
    parameters = models.JSONField(default=dict)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Paramètres de {self.user}"


class Menu(models.Model):
    """Menu de la semaine (créé vide en statut 'generating', puis rempli)"""
    STATUS_GENERATING = 'generating'
    STATUS_READY = 'ready'
    STATUS_CHOICES = [
        (STATUS_GENERATING, 'En cours de génération'),
        (STATUS_READY, 'Prêt'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='menus'
    )
    week_start_date = models.DateField(help_text="Lundi de la semaine")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_GENERATING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Menu du {self.week_start_date} ({self.user})"


class DishContent(models.Model):
    """Champs communs aux plats, favoris et recettes"""
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    complete_description = models.TextField(blank=True, null=True)
    detailed_recipe = models.TextField(blank=True, null=True, help_text="Recette détaillée (Markdown)")
    image_url = models.URLField(max_length=500, blank=True, null=True)
    preparation_time = models.IntegerField(blank=True, null=True, help_text="Temps de préparation en minutes")
    cooking_time = models.IntegerField(blank=True, null=True, help_text="Temps de cuisson en minutes")
    kcal = models.IntegerField(blank=True, null=True)
    servings = models.IntegerField(default=2)

    class Meta:
        abstract = True

    def __str__(self):
        return self.title


class Dish(DishContent):
    """Entrée partagée du catalogue (n'appartient à aucun utilisateur)"""
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='created_dishes'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        verbose_name_plural = 'Dishes'


class Favorite(DishContent):
    """Recette sauvegardée par un utilisateur"""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='favorites'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']


class Recipe(DishContent):
    """Instance d'un plat dans un menu"""
    menu = models.ForeignKey(
        Menu,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='recipes'
    )
    is_from_database = models.BooleanField(
        default=False,
        help_text="Reprise d'un favori ou d'une recette existante plutôt que générée"
    )
    is_cooked = models.BooleanField(default=False)
    dish = models.ForeignKey(
        Dish,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='recipes',
        help_text="Lien courant vers le catalogue"
    )
    original_dish_id = models.IntegerField(
        blank=True,
        null=True,
        help_text="Provenance : id du plat, favori ou recette d'origine (lecture sur un seul saut)"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']


class IngredientLine(models.Model):
    name = models.CharField(max_length=200)
    quantity = models.CharField(max_length=100, blank=True, default='')
    category = models.CharField(max_length=100, blank=True, default='')

    class Meta:
        abstract = True
        ordering = ['id']

    def __str__(self):
        return f"{self.name} ({self.quantity})"


class DishIngredient(IngredientLine):
    dish = models.ForeignKey(Dish, on_delete=models.CASCADE, related_name='ingredients')


class FavoriteIngredient(IngredientLine):
    favorite = models.ForeignKey(Favorite, on_delete=models.CASCADE, related_name='ingredients')


class RecipeIngredient(IngredientLine):
    recipe = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name='ingredients')


class ShoppingList(models.Model):
    """Liste de courses d'un menu : sa présence marque le menu comme validé"""
    menu = models.ForeignKey(Menu, on_delete=models.CASCADE, related_name='shopping_lists')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Liste de courses du menu {self.menu_id}"


class ShoppingListItem(models.Model):
    shopping_list = models.ForeignKey(ShoppingList, on_delete=models.CASCADE, related_name='items')
    name = models.CharField(max_length=200)
    quantity = models.CharField(max_length=100, blank=True, default='')
    category = models.CharField(max_length=100, blank=True, default='')
    is_manually_added = models.BooleanField(default=False)

    class Meta:
        ordering = ['category', 'name']

    def __str__(self):
        return self.name

from django.contrib import admin
from .models import (
    Dish,
    DishIngredient,
    Favorite,
    FavoriteIngredient,
    Menu,
    MenuSettings,
    Recipe,
    RecipeIngredient,
    ShoppingList,
    ShoppingListItem,
)


class DishIngredientInline(admin.TabularInline):
    model = DishIngredient
    extra = 0


class FavoriteIngredientInline(admin.TabularInline):
    model = FavoriteIngredient
    extra = 0


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    extra = 0


class ShoppingListItemInline(admin.TabularInline):
    model = ShoppingListItem
    extra = 0


@admin.register(Menu)
class MenuAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'week_start_date', 'status', 'created_at']
    list_filter = ['status']


@admin.register(Dish)
class DishAdmin(admin.ModelAdmin):
    list_display = ['title', 'servings', 'kcal', 'created_at']
    search_fields = ['title']
    inlines = [DishIngredientInline]


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'created_at']
    search_fields = ['title']
    inlines = [FavoriteIngredientInline]


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ['title', 'menu', 'dish', 'original_dish_id', 'is_from_database', 'is_cooked']
    list_filter = ['is_from_database', 'is_cooked']
    inlines = [RecipeIngredientInline]


@admin.register(ShoppingList)
class ShoppingListAdmin(admin.ModelAdmin):
    list_display = ['menu', 'created_at']
    inlines = [ShoppingListItemInline]


admin.site.register(MenuSettings)

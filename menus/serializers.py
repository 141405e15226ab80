from rest_framework import serializers

from .models import (
    Dish,
    DishIngredient,
    Favorite,
    FavoriteIngredient,
    Menu,
    Recipe,
    RecipeIngredient,
    ShoppingList,
    ShoppingListItem,
)
from .services.exceptions import InvalidParametersError
from .services.parameters import parse_parameters

CONTENT_FIELDS = [
    'title', 'description', 'complete_description', 'detailed_recipe', 'image_url',
    'preparation_time', 'cooking_time', 'kcal', 'servings',
]


class DishIngredientSerializer(serializers.ModelSerializer):
    class Meta:
        model = DishIngredient
        fields = ['id', 'name', 'quantity', 'category']


class FavoriteIngredientSerializer(serializers.ModelSerializer):
    class Meta:
        model = FavoriteIngredient
        fields = ['id', 'name', 'quantity', 'category']


class RecipeIngredientSerializer(serializers.ModelSerializer):
    class Meta:
        model = RecipeIngredient
        fields = ['id', 'name', 'quantity', 'category']


class RecipeSerializer(serializers.ModelSerializer):
    ingredients = RecipeIngredientSerializer(many=True, read_only=True)

    class Meta:
        model = Recipe
        fields = ['id', 'menu', 'dish', 'original_dish_id', 'is_from_database', 'is_cooked', 'created_at'] \
            + CONTENT_FIELDS + ['ingredients']
        read_only_fields = fields


class MenuSerializer(serializers.ModelSerializer):
    """Menu complet (recettes + ingrédients) : payload de l'API, du cache et de MenuGenerated"""
    recipes = RecipeSerializer(many=True, read_only=True)
    is_validated = serializers.SerializerMethodField()

    class Meta:
        model = Menu
        fields = ['id', 'user', 'week_start_date', 'created_at', 'status', 'is_validated', 'recipes']
        read_only_fields = fields

    def get_is_validated(self, obj):
        # `shopping_lists` est préchargé par le service
        return len(obj.shopping_lists.all()) > 0


class ShoppingListItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShoppingListItem
        fields = ['id', 'name', 'quantity', 'category', 'is_manually_added']


class ShoppingListSerializer(serializers.ModelSerializer):
    items = ShoppingListItemSerializer(many=True, read_only=True)

    class Meta:
        model = ShoppingList
        fields = ['id', 'menu', 'created_at', 'items']


class DishSerializer(serializers.ModelSerializer):
    ingredients = DishIngredientSerializer(many=True, read_only=True)

    class Meta:
        model = Dish
        fields = ['id', 'created_at', 'updated_at'] + CONTENT_FIELDS + ['ingredients']


class FavoriteSerializer(serializers.ModelSerializer):
    ingredients = FavoriteIngredientSerializer(many=True, read_only=True)

    class Meta:
        model = Favorite
        fields = ['id', 'created_at', 'updated_at'] + CONTENT_FIELDS + ['ingredients']


def _parse_parameters_field(value):
    if not isinstance(value, dict):
        raise serializers.ValidationError("Les paramètres sont requis")
    try:
        return parse_parameters(value)
    except InvalidParametersError as exc:
        raise serializers.ValidationError(str(exc))


class MenuGenerationSerializer(serializers.Serializer):
    """Requête de génération : paramètres (v1 ou v2) et recettes à reprendre"""
    parameters = serializers.JSONField()
    recipe_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        allow_null=True,
        default=None,
    )

    def validate_parameters(self, value):
        parameters = _parse_parameters_field(value)
        if parameters.week_start_date is None:
            raise serializers.ValidationError("La date de début de semaine est requise")
        if parameters.week_start_date.weekday() != 0:
            raise serializers.ValidationError("La date de début de semaine doit être un lundi")
        if not parameters.configurations:
            raise serializers.ValidationError("Au moins une configuration de plats est requise")
        return parameters


class MenuParametersSerializer(serializers.Serializer):
    parameters = serializers.JSONField()

    def validate_parameters(self, value):
        return _parse_parameters_field(value)


class RecipeReplacementSerializer(serializers.Serializer):
    """Contraintes du remplaçant ; à défaut, les derniers paramètres enregistrés"""
    parameters = serializers.JSONField(required=False, allow_null=True, default=None)

    def validate_parameters(self, value):
        if value is None:
            return None
        return _parse_parameters_field(value)


class ValidateMenuSerializer(serializers.Serializer):
    favorite_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )


class RecipeCookedSerializer(serializers.Serializer):
    is_cooked = serializers.BooleanField()


class IngredientInputSerializer(serializers.Serializer):
    name = serializers.CharField()
    quantity = serializers.CharField(allow_blank=True, required=False, default='')
    category = serializers.CharField(allow_blank=True, required=False, default='')


class DuplicateCheckSerializer(serializers.Serializer):
    title = serializers.CharField()
    ingredients = IngredientInputSerializer(many=True, required=False, default=list)
    exclude_id = serializers.IntegerField(required=False, allow_null=True, default=None)

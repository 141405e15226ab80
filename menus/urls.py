from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DishViewSet, FavoriteViewSet, MenuViewSet, RecipeViewSet

router = DefaultRouter(trailing_slash=False)
router.register(r'menu', MenuViewSet, basename='menu')
router.register(r'recipes', RecipeViewSet, basename='recipe')
router.register(r'favorites', FavoriteViewSet, basename='favorite')
router.register(r'dishes', DishViewSet, basename='dish')

urlpatterns = [
    path('', include(router.urls)),
]

import json
import logging
import uuid
from time import monotonic

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.http import StreamingHttpResponse
from rest_framework import renderers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Dish, Favorite
from .serializers import (
    DishSerializer,
    DuplicateCheckSerializer,
    FavoriteSerializer,
    MenuGenerationSerializer,
    MenuParametersSerializer,
    RecipeCookedSerializer,
    RecipeReplacementSerializer,
    RecipeSerializer,
    ValidateMenuSerializer,
)
from .services import menu_service
from .services.catalog_matcher import find_duplicate
from .services.exceptions import GenerationError, MenuStateError, NotFoundError
from .services.notifications import TERMINAL_EVENTS, get_notification_channel

logger = logging.getLogger(__name__)


class EventStreamRenderer(renderers.BaseRenderer):
    """Permet la négociation de contenu pour `Accept: text/event-stream`"""
    media_type = 'text/event-stream'
    format = 'event-stream'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b''
        return f"event: error\ndata: {json.dumps(data, cls=DjangoJSONEncoder)}\n\n".encode(self.charset)


class ServiceErrorMixin:
    """Traduit les exceptions du service en réponses HTTP"""

    def handle_exception(self, exc):
        if isinstance(exc, NotFoundError):
            return Response({'error': str(exc)}, status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, MenuStateError):
            return Response({'error': str(exc)}, status=status.HTTP_409_CONFLICT)
        if isinstance(exc, GenerationError):
            logger.error("[API] Erreur de génération: %s", exc)
            return Response({'error': "La génération a échoué, veuillez réessayer"}, status=status.HTTP_502_BAD_GATEWAY)
        return super().handle_exception(exc)


def _format_sse(event, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data, cls=DjangoJSONEncoder)}\n\n"


def _event_stream(channel, connection_id, menu_id):
    stream_timeout = getattr(settings, 'NOTIFICATION_STREAM_TIMEOUT', 300)
    keepalive_interval = getattr(settings, 'NOTIFICATION_KEEPALIVE_INTERVAL', 15)
    deadline = monotonic() + stream_timeout
    try:
        yield f": connecté au groupe menu-{menu_id}\n\n"
        for message in channel.listen(connection_id, keepalive_interval):
            event = message.get('event')
            if event == 'keepalive':
                if monotonic() >= deadline:
                    break
                yield ": keepalive\n\n"
                continue
            yield _format_sse(event, message.get('data'))
            if event in TERMINAL_EVENTS or monotonic() >= deadline:
                break
    finally:
        channel.leave_group(connection_id, menu_id)
        logger.debug("[Notifications] Flux fermé pour %s (menu %s)", connection_id, menu_id)


class MenuViewSet(ServiceErrorMixin, viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r'\d+'

    def list(self, request):
        return Response(menu_service.get_all_menus(request.user))

    def retrieve(self, request, pk=None):
        return Response(menu_service.get_menu(request.user, int(pk)))

    def destroy(self, request, pk=None):
        menu_service.delete_menu(request.user, int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def generate(self, request):
        """Lance la génération : réponse immédiate, fin de génération notifiée sur /events"""
        serializer = MenuGenerationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            menu = menu_service.start_menu_generation(
                request.user,
                serializer.validated_data['parameters'],
                serializer.validated_data.get('recipe_ids'),
            )
        except Exception as e:
            logger.error(f"Erreur lors du démarrage de la génération de menu: {e}", exc_info=True)
            return Response(
                {'error': "Impossible de démarrer la génération du menu"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response({'menu_id': menu.id, 'status': menu.status}, status=status.HTTP_202_ACCEPTED)

    @action(detail=True, methods=['post'])
    def validate(self, request, pk=None):
        serializer = ValidateMenuSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        menu = menu_service.validate_menu(request.user, int(pk), serializer.validated_data['favorite_ids'])
        return Response(menu)

    @action(detail=True, methods=['get'], url_path='shopping-list')
    def shopping_list(self, request, pk=None):
        return Response(menu_service.get_shopping_list(request.user, int(pk)))

    @action(detail=False, methods=['get'], url_path='last-parameters')
    def last_parameters(self, request):
        return Response(menu_service.get_last_parameters(request.user))

    @action(detail=False, methods=['post'], url_path='parameters')
    def save_parameters(self, request):
        serializer = MenuParametersSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        menu_service.save_parameters(request.user, serializer.validated_data['parameters'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path=r'recipe/(?P<recipe_id>\d+)/replace')
    def replace_recipe(self, request, pk=None, recipe_id=None):
        serializer = RecipeReplacementSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        recipe = menu_service.replace_recipe(
            request.user, int(pk), int(recipe_id), serializer.validated_data['parameters'],
        )
        return Response(RecipeSerializer(recipe).data)

    @action(detail=True, methods=['delete'], url_path=r'recipe/(?P<recipe_id>\d+)')
    def delete_recipe(self, request, pk=None, recipe_id=None):
        menu_service.delete_recipe(request.user, int(pk), int(recipe_id))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path=r'favorite/(?P<favorite_id>\d+)')
    def add_favorite(self, request, pk=None, favorite_id=None):
        recipe = menu_service.add_favorite_to_menu(request.user, int(pk), int(favorite_id))
        return Response(RecipeSerializer(recipe).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='generate-detailed-recipes')
    def generate_detailed_recipes(self, request, pk=None):
        """Replanifie les recettes détaillées manquantes (génération en arrière-plan)"""
        recipe_ids = menu_service.regenerate_detailed_recipes(request.user, int(pk))
        return Response({'menu_id': int(pk), 'recipe_ids': recipe_ids}, status=status.HTTP_202_ACCEPTED)

    @action(
        detail=True,
        methods=['get'],
        renderer_classes=[EventStreamRenderer, renderers.JSONRenderer],
    )
    def events(self, request, pk=None):
        """
        Flux Server-Sent Events du groupe `menu-{id}`.

        Ouvrir le flux rejoint le groupe : à faire avant la fin de la génération.
        Le flux se ferme après MenuGenerated / MenuGenerationError ou au timeout.
        """
        menu = menu_service.get_accessible_menu(request.user, int(pk))
        channel = get_notification_channel()
        connection_id = uuid.uuid4().hex
        channel.join_group(connection_id, menu.id)

        response = StreamingHttpResponse(
            _event_stream(channel, connection_id, menu.id),
            content_type='text/event-stream',
        )
        response['Cache-Control'] = 'no-cache'
        response['X-Accel-Buffering'] = 'no'
        return response


class RecipeViewSet(ServiceErrorMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = RecipeSerializer
    lookup_value_regex = r'\d+'

    @action(detail=True, methods=['post'])
    def cooked(self, request, pk=None):
        serializer = RecipeCookedSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        recipe = menu_service.set_recipe_cooked(request.user, int(pk), serializer.validated_data['is_cooked'])
        return Response(RecipeSerializer(recipe).data)


class DuplicateCheckMixin:
    """`POST .../check-duplicate` : titre + ingrédients comparés au pool de la vue"""

    @action(detail=False, methods=['post'], url_path='check-duplicate')
    def check_duplicate(self, request):
        serializer = DuplicateCheckSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        match = find_duplicate(
            data['title'],
            data['ingredients'],
            self.get_queryset(),
            exclude_id=data.get('exclude_id'),
        )
        return Response({'exists': match is not None, 'id': match.id if match else None})


class FavoriteViewSet(DuplicateCheckMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = FavoriteSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Favorite.objects.filter(user=self.request.user).prefetch_related('ingredients').order_by('id')


class DishViewSet(DuplicateCheckMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = DishSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Dish.objects.prefetch_related('ingredients').order_by('id')

"""
Canal de notifications temps réel (un groupe par menu)

Un client rejoint le groupe `menu-{id}` avant la fin de la génération, puis
écoute. Deux événements seulement : `MenuGenerated` (menu complet) et
`MenuGenerationError` (id du menu). Pas d'historique : un client arrivé après
l'événement doit relire le menu.

Backends :
- `redis` : Redis pub/sub, partagé entre le web et les workers Celery
- `local` : files en mémoire du process (développement, tests)
"""
import json
import logging
import queue
import threading
from typing import Dict, Iterator, Optional, Set

import redis
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)

MENU_GENERATED = 'MenuGenerated'
MENU_GENERATION_ERROR = 'MenuGenerationError'
TERMINAL_EVENTS = (MENU_GENERATED, MENU_GENERATION_ERROR)
KEEPALIVE = {'event': 'keepalive', 'data': None}


def group_name(menu_id) -> str:
    return f"menu-{menu_id}"


def _encode(event: str, payload) -> str:
    return json.dumps({'event': event, 'data': payload}, cls=DjangoJSONEncoder)


class LocalNotificationChannel:
    """Groupes et files d'attente en mémoire, protégés par un verrou"""

    def __init__(self):
        self._lock = threading.Lock()
        self._groups: Dict[str, Set[str]] = {}
        self._queues: Dict[str, queue.Queue] = {}

    def join_group(self, connection_id: str, menu_id):
        with self._lock:
            self._queues.setdefault(connection_id, queue.Queue())
            self._groups.setdefault(group_name(menu_id), set()).add(connection_id)
        logger.debug("[Notifications] %s a rejoint %s", connection_id, group_name(menu_id))

    def leave_group(self, connection_id: str, menu_id):
        name = group_name(menu_id)
        with self._lock:
            members = self._groups.get(name)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    del self._groups[name]
            if not any(connection_id in members for members in self._groups.values()):
                self._queues.pop(connection_id, None)

    def publish_to_group(self, menu_id, event: str, payload) -> int:
        message = json.loads(_encode(event, payload))
        with self._lock:
            targets = [
                self._queues[connection_id]
                for connection_id in self._groups.get(group_name(menu_id), ())
                if connection_id in self._queues
            ]
        for target in targets:
            target.put(message)
        return len(targets)

    def listen(self, connection_id: str, timeout: float) -> Iterator[dict]:
        """Produit les messages reçus, ou un keepalive toutes les `timeout` secondes"""
        with self._lock:
            inbox = self._queues.setdefault(connection_id, queue.Queue())
        while True:
            try:
                yield inbox.get(timeout=timeout)
            except queue.Empty:
                yield KEEPALIVE


class RedisNotificationChannel:
    """Redis pub/sub : un abonnement (PubSub) par connexion cliente"""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, redis.client.PubSub] = {}

    def _subscription(self, connection_id: str):
        with self._lock:
            pubsub = self._subscriptions.get(connection_id)
            if pubsub is None:
                pubsub = self._client.pubsub(ignore_subscribe_messages=True)
                self._subscriptions[connection_id] = pubsub
            return pubsub

    def join_group(self, connection_id: str, menu_id):
        self._subscription(connection_id).subscribe(group_name(menu_id))
        logger.debug("[Notifications] %s abonné à %s", connection_id, group_name(menu_id))

    def leave_group(self, connection_id: str, menu_id):
        with self._lock:
            pubsub = self._subscriptions.get(connection_id)
        if pubsub is None:
            return
        pubsub.unsubscribe(group_name(menu_id))
        if not pubsub.channels:
            with self._lock:
                self._subscriptions.pop(connection_id, None)
            pubsub.close()

    def publish_to_group(self, menu_id, event: str, payload) -> int:
        return self._client.publish(group_name(menu_id), _encode(event, payload))

    def listen(self, connection_id: str, timeout: float) -> Iterator[dict]:
        pubsub = self._subscription(connection_id)
        while True:
            message = pubsub.get_message(timeout=timeout)
            if message is None or message.get('type') != 'message':
                yield KEEPALIVE
                continue
            try:
                yield json.loads(message['data'])
            except json.JSONDecodeError as exc:
                logger.error("[Notifications] Message invalide sur %s: %s", message.get('channel'), exc)


_channel = None
_channel_lock = threading.Lock()


def get_notification_channel():
    global _channel
    with _channel_lock:
        if _channel is None:
            backend = getattr(settings, 'NOTIFICATION_BACKEND', 'local')
            if backend == 'redis':
                _channel = RedisNotificationChannel(settings.REDIS_URL or 'redis://localhost:6379/0')
            else:
                _channel = LocalNotificationChannel()
            logger.info("[Notifications] Backend '%s' initialisé", backend)
        return _channel


def reset_notification_channel(channel=None):
    """Remplace le canal courant (tests, rechargement de configuration)"""
    global _channel
    with _channel_lock:
        _channel = channel


def notify(menu_id, event: str, payload) -> int:
    receivers = get_notification_channel().publish_to_group(menu_id, event, payload)
    logger.info("[Notifications] %s publié sur %s (%d destinataire(s))", event, group_name(menu_id), receivers)
    return receivers

"""
Change Notification Service.

Signals "something changed, re-read" per trip and table. Delivery is
fire-and-forget: publish failures are logged and never reach the caller,
because readers always re-fetch a full snapshot.
"""

import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Tuple, Union

import tripledger.app.core.redis_client as redis_client_module
from tripledger.app.core.config import settings
from tripledger.app.models.enums import ChangeTable

logger = logging.getLogger("tripledger.notifications")

ChangeCallback = Callable[[str, str], Union[None, Awaitable[None]]]


def channel_name(trip_id: str, table: str) -> str:
    return f"{settings.change_channel_prefix}:trip:{trip_id}:{table}"


class ChangeNotifier:
    """
    Publish/subscribe facade.

    Remote readers subscribe to the Redis channel ``<prefix>:trip:<trip_id>:<table>``;
    in-process readers register through ``on_change``.
    """

    def __init__(self):
        self._subscribers: Dict[Tuple[str, str], List[ChangeCallback]] = {}

    def on_change(self, trip_id: str, table: Union[ChangeTable, str], callback: ChangeCallback) -> Callable[[], None]:
        """
        Register ``callback(trip_id, table)``.

        Returns:
            A function that removes the subscription
        """
        key = (trip_id, ChangeTable(table).value)
        self._subscribers.setdefault(key, []).append(callback)

        def unsubscribe():
            callbacks = self._subscribers.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    async def publish(self, trip_id: str, table: Union[ChangeTable, str]):
        """Signal a committed change. Never raises."""
        table_name = ChangeTable(table).value

        try:
            await redis_client_module.redis_client.publish(channel_name(trip_id, table_name), table_name)
        except Exception as exc:
            logger.warning("Change publish failed for trip %s table %s: %s", trip_id, table_name, exc)

        for callback in list(self._subscribers.get((trip_id, table_name), [])):
            try:
                result = callback(trip_id, table_name)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Change subscriber failed for trip %s table %s", trip_id, table_name)

    def clear(self):
        self._subscribers.clear()


change_notifier = ChangeNotifier()

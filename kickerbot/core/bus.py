"""
In-process message bus connecting the actors.

A channel is the queue.Queue handed to one consumer by subscribe_queue():
any number of producers, one consumer, FIFO. There is no ordering between
channels.
"""

import queue
import threading
from typing import Any, Dict, List, Optional, Tuple


class MessageBus:
    """
    Topic router with a queue per subscriber.

    Besides fan-out, the bus remembers the last message seen on each topic
    (get_latest), which is how connection state and motor output are
    observed. Unbounded channels (maxsize=0) never lose a command. A bounded
    channel that is full either drops the message being published or, when
    opened with drop_oldest, evicts its oldest entry to make room.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._channels: Dict[str, List[Tuple[queue.Queue, bool]]] = {}
        self._latest: Dict[str, Any] = {}

    def publish(self, topic: str, message: Any) -> None:
        """Hand a message to every channel on the topic and remember it."""
        with self._lock:
            self._latest[topic] = message
            channels = list(self._channels.get(topic, ()))

        for channel, drop_oldest in channels:
            _offer(channel, message, drop_oldest)

    def get_latest(self, topic: str) -> Optional[Any]:
        """Last message published on the topic, or None."""
        with self._lock:
            return self._latest.get(topic)

    def subscribe_queue(self, topic: str, maxsize: int = 0, drop_oldest: bool = False) -> queue.Queue:
        """
        Open a new channel on a topic.

        Args:
            topic: One of the Topics constants
            maxsize: Channel capacity, 0 for unbounded
            drop_oldest: When full, evict the oldest entry instead of
                rejecting the new one

        Returns:
            The channel; the caller is its only consumer
        """
        channel: queue.Queue = queue.Queue(maxsize=maxsize)
        with self._lock:
            self._channels.setdefault(topic, []).append((channel, drop_oldest))
        return channel


def _offer(channel: queue.Queue, message: Any, drop_oldest: bool) -> None:
    while True:
        try:
            channel.put_nowait(message)
            return
        except queue.Full:
            if not drop_oldest:
                return
        try:
            channel.get_nowait()
        except queue.Empty:
            pass


class Topics:
    """Topic names."""
    # NetworkActor -> CommandRouterActor
    ROBOT_COMMAND: str = "/robot/command"

    # Actor inbound channels
    DRIVING_COMMAND: str = "/driving/command"
    PID_COMMAND: str = "/pid/command"
    NETWORK_COMMAND: str = "/network/command"
    NETWORK_CONTROL: str = "/network/control"

    # Observability
    CONNECTION_STATE: str = "/network/connection_state"
    MOTOR_OUTPUT: str = "/driving/output"

"""
Network Actor - owns the controller link.

Responsibilities:
- Find the controller by UDP broadcast discovery
- Keep the session alive with probes, stop the robot when the link goes
  quiet and abandon the session after a longer silence
- Decode controller datagrams and forward robot commands to the router
- Send identity on connect and color/power telemetry afterwards
- Own the connection state and the Status indicators

Session states: Disconnected -> (discovery) -> Connecting -> Connected
<-> Reconnecting. A silence longer than disconnect_timeout_ms ends the run
with ConnectionLost; the supervisor restarts it, which rediscovers.
"""

import logging
import queue
import socket
import time
from typing import Callable, Optional, Tuple

from ..core.actor import Actor
from ..core.bus import MessageBus, Topics
from ..core.config import Config
from ..core.messages import ColorTelemetry, ConnectionState, ConnectionStateChange, StopCommand
from ..core.protocol import (
    DISCOVERY_PROBE, KEEPALIVE_PROBE, OutboundType,
    Pong, SetName, SetLedColor, SetTrack,
    decode_message, encode_power, encode_rgb, encode_text, parse_discovery_reply,
)
from ..robot.status import Status

logger = logging.getLogger(__name__)

Address = Tuple[str, int]


class ConnectionLost(ConnectionError):
    """The controller has been silent for longer than the disconnect timeout."""


class NetworkActor(Actor):
    """
    Network I/O actor.

    Subscribes: /network/command (ColorTelemetry), /network/control (StopCommand)
    Publishes: /robot/command (controller messages), /network/connection_state
    """

    def __init__(
        self,
        bus: MessageBus,
        config: Config,
        status: Status,
        clock: Callable[[], float] = time.monotonic,
        socket_factory: Callable[..., socket.socket] = socket.socket,
    ):
        super().__init__(
            name="NetworkActor",
            bus=bus,
            config=config,
            restart_delay_s=config.supervision.restart_delay_s,
        )

        self._cfg = config.network
        self._status = status
        self._clock = clock
        self._socket_factory = socket_factory

        # Only the newest readings are kept while the link is slow or down
        self._telemetry_queue = bus.subscribe_queue(
            Topics.NETWORK_COMMAND, maxsize=self._cfg.outbound_queue_size, drop_oldest=True
        )
        self._control_queue = bus.subscribe_queue(Topics.NETWORK_CONTROL)

        # Per-run state, reset in setup()
        self._socket: Optional[socket.socket] = None
        self._server: Optional[Address] = None
        self._last_contact = 0.0
        self._stopped = False  # At least one receive timed out since the last datagram
        self._safety_stopped = False  # Zero track already sent for this silence

    @property
    def server_address(self) -> Optional[Address]:
        return self._server

    @property
    def connection_state(self) -> ConnectionState:
        return self._status.connection_state

    def setup(self) -> None:
        """Discover the controller and open a session."""
        self._socket = None
        self._server = None
        self._stopped = False
        self._safety_stopped = False
        self._set_state(ConnectionState.DISCONNECTED)

        server = self._discover()
        if server is None:
            return
        self._set_state(ConnectionState.CONNECTING)
        self._connect(server)

    def _open_socket(self) -> socket.socket:
        sock = self._socket_factory(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind(("", 0))
        return sock

    def _discover(self) -> Optional[Address]:
        """
        Broadcast discovery probes until a controller answers.

        Returns None only when the actor is being stopped.
        """
        target = (self._cfg.broadcast_address, self._cfg.discovery_port)
        logger.info("[NetworkActor] Start discovery on port %d", self._cfg.discovery_port)

        sock = self._open_socket()
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.settimeout(self._cfg.discovery_timeout_s)

            while self.is_running():
                sock.sendto(DISCOVERY_PROBE, target)
                try:
                    data, (host, _) = sock.recvfrom(self._cfg.buffer_size)
                except socket.timeout:
                    continue

                port = parse_discovery_reply(data)
                if port is None:
                    logger.debug("[NetworkActor] Ignoring short discovery reply from %s", host)
                    continue

                logger.info("[NetworkActor] Found controller at %s:%d", host, port)
                return (host, port)
            return None
        finally:
            sock.close()

    def _connect(self, server: Address) -> None:
        """Open the session socket, greet the controller and send identity."""
        sock = self._open_socket()
        sock.settimeout(self._cfg.receive_timeout_s)
        self._socket = sock
        self._server = server

        sock.sendto(KEEPALIVE_PROBE, server)
        self._last_contact = self._clock()
        self._set_state(ConnectionState.CONNECTED)

        self._send(encode_text(OutboundType.VERSION, self._status.version))
        self._send(encode_text(OutboundType.NAME, self._status.get_name()))
        self._send(encode_text(OutboundType.COLOR, self._status.get_color()))
        self._send(encode_text(OutboundType.AVAILABLE_COLORS, ";".join(self._status.available_colors)))

    def loop(self) -> None:
        """One receive attempt, then pending control and at most one telemetry reading."""
        if self._socket is None:
            return

        try:
            data, _ = self._socket.recvfrom(self._cfg.buffer_size)
        except OSError:
            self._on_silence()
        else:
            self._on_datagram(data)

        self._drain_outbound()

    # ============ Inbound ============

    def _on_datagram(self, data: bytes) -> None:
        self._last_contact = self._clock()

        if self._stopped:
            self._stopped = False
            self._safety_stopped = False
            self._set_state(ConnectionState.CONNECTED)

        message = decode_message(data)
        if message is None:
            logger.debug("[NetworkActor] Ignoring datagram %r", data[:8])
            return

        if isinstance(message, Pong):
            return
        if isinstance(message, SetName):
            self._status.set_name(message.name)
            return
        if isinstance(message, SetLedColor):
            self._status.set_color(message.color)
            return

        self.bus.publish(Topics.ROBOT_COMMAND, message)

    def _on_silence(self) -> None:
        elapsed_ms = (self._clock() - self._last_contact) * 1000.0

        if elapsed_ms > self._cfg.disconnect_timeout_ms:
            self._set_state(ConnectionState.DISCONNECTED)
            raise ConnectionLost(f"No datagram from {self._server} for {elapsed_ms:.0f} ms")

        if elapsed_ms > self._cfg.stop_timeout_ms and not self._safety_stopped:
            logger.warning("[NetworkActor] Link quiet for %.0f ms, stopping tracks", elapsed_ms)
            self.bus.publish(Topics.ROBOT_COMMAND, SetTrack(0.0, 0.0))
            self._safety_stopped = True
            self._set_state(ConnectionState.RECONNECTING)

        self._socket.sendto(KEEPALIVE_PROBE, self._server)
        self._stopped = True

    # ============ Outbound ============

    def _drain_outbound(self) -> None:
        while True:
            try:
                cmd = self._control_queue.get_nowait()
            except queue.Empty:
                break
            if isinstance(cmd, StopCommand):
                logger.info("[NetworkActor] Stop requested %s", cmd.reason)
                self.finish()
                return
            logger.warning("[NetworkActor] Unknown control message: %r", cmd)

        try:
            cmd = self._telemetry_queue.get_nowait()
        except queue.Empty:
            return

        if isinstance(cmd, ColorTelemetry):
            self._send(encode_rgb((cmd.r, cmd.g, cmd.b)))
            self._send(encode_power(self._status.get_power()))
        else:
            logger.warning("[NetworkActor] Unknown command: %r", cmd)

    def _send(self, datagram: bytes) -> None:
        self._socket.sendto(datagram, self._server)

    def _set_state(self, state: ConnectionState) -> None:
        previous = self._status.connection_state
        if state is previous:
            return
        self._status.set_connection_state(state)
        self.bus.publish(Topics.CONNECTION_STATE, ConnectionStateChange(state=state, previous_state=previous))
        logger.info("[NetworkActor] %s -> %s", previous.value, state.value)

    def teardown(self) -> None:
        """Close the session socket."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None

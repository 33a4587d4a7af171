"""
Stream session: owns the MiniParse WebSocket connection and drives each
received frame through decoding, classification and delivery.
"""

import asyncio
import signal
import logging
from enum import Enum
from typing import Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..config.settings import ApplicationSettings
from ..parser.messages import ChatMessage, DecodeError, decode_message
from ..parser.tokenizer import LineTokenizer
from ..parser.categorizer import build_notification
from .notifier import PushoverNotifier

logger = logging.getLogger(__name__)


class ConnectError(ConnectionError):
    """Raised when the event stream cannot be reached."""


class SessionStatus(Enum):
    """Stream session status."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    TERMINATED = "terminated"


class SessionOutcome(Enum):
    """How a session ended."""

    INTERRUPTED = "interrupted"
    TERMINATED = "terminated"


class StreamSession:
    """
    A single connection to the event stream.

    Lifecycle: CONNECTING -> CONNECTED -> CLOSING (interrupt) or
    TERMINATED (read/decode error, server closed). Both end states are
    final; a session is never reconnected.
    """

    def __init__(
        self,
        settings: ApplicationSettings,
        notifier: PushoverNotifier,
        tokenizer: Optional[LineTokenizer] = None,
    ):
        self.settings = settings
        self.notifier = notifier
        self.tokenizer = tokenizer or LineTokenizer()

        self.websocket = None
        self.status = SessionStatus.CONNECTING
        self._reader: Optional[asyncio.Task] = None

        self.stats = {"frames": 0, "chat_lines": 0, "notifications": 0}

    @property
    def url(self) -> str:
        return self.settings.connection.url

    async def connect(self):
        """
        Dial the event stream.

        Raises:
            ConnectError: If the connection cannot be established
        """
        try:
            self.websocket = await websockets.connect(
                self.url, close_timeout=self.settings.connection.close_grace
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise ConnectError(f"dial {self.url}: {e}") from e

        self.status = SessionStatus.CONNECTED
        logger.info(f"Connected to websocket server at {self.url}.")

    async def handle_frame(self, raw: Union[bytes, str]):
        """
        Process one frame.

        Raises:
            DecodeError: If the frame is not a valid envelope
        """
        self.stats["frames"] += 1
        message = decode_message(raw)
        if not isinstance(message, ChatMessage):
            return

        self.stats["chat_lines"] += 1
        log_line = self.tokenizer.parse_line(message.data)
        notification = build_notification(log_line, self.settings.toggles)
        if notification is not None:
            self.stats["notifications"] += 1
            await self.notifier.send(notification)

    async def receive_loop(self):
        """Read frames until the connection ends or a frame fails to decode."""
        try:
            while True:
                try:
                    raw = await self.websocket.recv()
                except ConnectionClosed as e:
                    logger.info(f"read: {e}")
                    return

                try:
                    await self.handle_frame(raw)
                except DecodeError as e:
                    logger.error(f"decode: {e}")
                    return
        finally:
            if self.status is SessionStatus.CONNECTED:
                self.status = SessionStatus.TERMINATED

    async def _close_connection(self):
        """Send a normal close frame, waiting at most the close grace period."""
        try:
            await asyncio.wait_for(
                self.websocket.close(code=1000, reason=""),
                timeout=self.settings.connection.close_grace,
            )
        except asyncio.TimeoutError:
            logger.warning("Timed out waiting for the server to acknowledge close")
        except (OSError, WebSocketException) as e:
            logger.error(f"write close: {e}")

    async def release(self):
        """Close the connection after the receive loop ended on its own."""
        if self.websocket is not None:
            await self._close_connection()

    async def close(self):
        """
        Send a normal close frame and wait, up to the close grace period, for
        the receive loop to finish.
        """
        self.status = SessionStatus.CLOSING
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.connection.close_grace

        await self._close_connection()

        if self._reader is not None and not self._reader.done():
            await asyncio.wait({self._reader}, timeout=max(deadline - loop.time(), 0))
            if not self._reader.done():
                self._reader.cancel()
                await asyncio.gather(self._reader, return_exceptions=True)

    async def run(self, stop_event: asyncio.Event) -> SessionOutcome:
        """
        Run the receive loop until it ends or stop_event is set.

        Args:
            stop_event: Set by the interrupt handler to request shutdown

        Returns:
            How the session ended
        """
        if self.status is not SessionStatus.CONNECTED:
            raise RuntimeError(f"Session is {self.status.value}, not connected")

        self._reader = asyncio.create_task(self.receive_loop())
        stopper = asyncio.create_task(stop_event.wait())

        try:
            done, _ = await asyncio.wait(
                {self._reader, stopper}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stopper.cancel()

        if self._reader in done:
            try:
                # re-raise anything other than the expected read/decode endings
                self._reader.result()
            finally:
                await self.release()
            return SessionOutcome.TERMINATED

        logger.info("Interrupt detected. Closing connection.")
        await self.close()
        return SessionOutcome.INTERRUPTED


def install_interrupt_handler(
    loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event
) -> Callable[[], None]:
    """
    Route SIGINT to stop_event.

    Returns:
        A function restoring the previous handler
    """
    previous = signal.getsignal(signal.SIGINT)

    def restore_loop_handler():
        loop.remove_signal_handler(signal.SIGINT)
        # remove_signal_handler resets SIGINT to the default handler
        if previous is not None:
            signal.signal(signal.SIGINT, previous)

    try:
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
        return restore_loop_handler
    except (NotImplementedError, RuntimeError):
        pass

    # Windows event loops don't support add_signal_handler
    try:
        previous = signal.signal(
            signal.SIGINT, lambda signum, frame: loop.call_soon_threadsafe(stop_event.set)
        )
    except ValueError as e:
        logger.debug(f"Cannot install interrupt handler: {e}")
        return lambda: None
    return lambda: signal.signal(signal.SIGINT, previous)


async def run_bridge(
    settings: ApplicationSettings,
    stop_event: Optional[asyncio.Event] = None,
    notifier: Optional[PushoverNotifier] = None,
) -> SessionOutcome:
    """
    Connect to the event stream and forward party events until interrupted
    or the connection ends.

    The first dial failure is fatal. When reconnect_attempts is set, a
    session that ends on its own is replaced by a new one after
    reconnect_delay seconds, up to that many times.

    Raises:
        ConnectError: If the initial connection fails
    """
    stop_event = stop_event or asyncio.Event()
    restore_handler = install_interrupt_handler(asyncio.get_running_loop(), stop_event)
    connection = settings.connection

    try:
        async with notifier or PushoverNotifier(settings.pushover) as notifier:
            attempt = 0
            while True:
                session = StreamSession(settings, notifier)
                try:
                    await session.connect()
                except ConnectError as e:
                    if attempt == 0:
                        raise
                    logger.error(f"dial: {e}")
                    outcome = SessionOutcome.TERMINATED
                else:
                    outcome = await session.run(stop_event)
                    if outcome is SessionOutcome.INTERRUPTED:
                        return outcome

                if attempt >= connection.reconnect_attempts:
                    return outcome

                attempt += 1
                logger.info(
                    f"Reconnecting in {connection.reconnect_delay}s "
                    f"(attempt {attempt}/{connection.reconnect_attempts})"
                )
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=connection.reconnect_delay)
                    return SessionOutcome.INTERRUPTED
                except asyncio.TimeoutError:
                    pass
    finally:
        restore_handler()

"""
Session connection manager for the realtime event service.

``ConnectionManager`` owns one logical connection: it opens the socket,
sends the initial handshake, journals every sent and received event,
detects unsolicited closes and reconnects with bounded exponential backoff.

All state transitions are serialized through a single actor task reading a
command queue. Transport callbacks (connect results, inbound frames, socket
loss), the reconnect timer and caller operations (``send``, ``end``) are all
posted as commands, so at most one transition is in flight at a time.
Decoded events and error reports are delivered to callers from a separate
dispatcher task, which keeps user handlers from blocking the actor.

Usage:
    config = load_application_config()

    async with ConnectionManager(config, on_event=print) as manager:
        await manager.send_text("hello")
        event = await manager.receive()
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from realtime_session.config.constants import SYSTEM_INITIALIZED_TEXT
from realtime_session.config.logging_config import configure_logging
from realtime_session.config.models import ApplicationConfig
from realtime_session.exceptions import (
    MalformedFrame,
    NotConnected,
    ReconnectExhausted,
    TransportError,
)
from realtime_session.handlers.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
)
from realtime_session.handlers.event_router import EventRouter, OutboundEvent
from realtime_session.history import HistoryJournal
from realtime_session.models.connection_state import ConnectionState, HistoryDirection
from realtime_session.models.realtime_api import (
    ConversationItemCreateEvent,
    MessageRole,
    RealtimeEvent,
    ResponseCreateEvent,
    ResponseCreateOptions,
)
from realtime_session.transport import open_websocket
from realtime_session.utils.retry_utils import ReconnectPolicy
from realtime_session.utils.websocket_utils import WebSocketUtils

logger = configure_logging("connection_manager")

Connector = Callable[..., Awaitable[Any]]


# ----------------------------------------------------------------------
# Actor commands
# ----------------------------------------------------------------------


@dataclass
class _Start:
    pass


@dataclass
class _ConnectSucceeded:
    generation: int
    connection: Any


@dataclass
class _ConnectFailed:
    generation: int
    error: Exception


@dataclass
class _FrameReceived:
    generation: int
    raw: Union[str, bytes]


@dataclass
class _ConnectionLost:
    generation: int
    error: Exception


@dataclass
class _ReconnectDue:
    generation: int


@dataclass
class _Send:
    event: RealtimeEvent
    frame: str
    future: asyncio.Future


@dataclass
class _End:
    future: asyncio.Future


# Dispatcher notifications
@dataclass
class _Deliver:
    event: RealtimeEvent


@dataclass
class _ReportError:
    error: Exception
    context: ErrorContext
    severity: ErrorSeverity
    operation: str
    metadata: Dict[str, Any]


@dataclass
class _Fatal:
    error: Exception


_STOP = object()


def _resolve(future: asyncio.Future, result: Any = None) -> None:
    if not future.done():
        future.set_result(result)


def _reject(future: asyncio.Future, error: Exception) -> None:
    if not future.done():
        future.set_exception(error)


async def _cancel_task(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done() or task is asyncio.current_task():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


class ConnectionManager:
    """
    Resilient connection to the realtime event service.

    State machine::

        IDLE -> CONNECTING -> OPEN <-> RECONNECTING -> CLOSED

    Args:
        config: Explicit application configuration (connection parameters,
            backoff limits, journal path, socket settings)
        router: Event codec and handler registry
        journal: Session journal; defaults to one at ``config.history.file_path``
        error_handler: Error channel for locally handled failures
        reconnect_policy: Backoff policy; defaults to one built from ``config.reconnect``
        connector: ``async (url, headers, ws_config) -> connection``; defaults
            to ``open_websocket``
        on_event: Sync or async callback for every decoded inbound event
        on_state_change: Sync callback ``(old_state, new_state)``
        on_fatal_error: Sync or async callback invoked on reconnect exhaustion
    """

    def __init__(
        self,
        config: Optional[ApplicationConfig] = None,
        *,
        router: Optional[EventRouter] = None,
        journal: Optional[HistoryJournal] = None,
        error_handler: Optional[ErrorHandler] = None,
        reconnect_policy: Optional[ReconnectPolicy] = None,
        connector: Optional[Connector] = None,
        on_event: Optional[Callable[[RealtimeEvent], Any]] = None,
        on_state_change: Optional[
            Callable[[ConnectionState, ConnectionState], None]
        ] = None,
        on_fatal_error: Optional[Callable[[Exception], Any]] = None,
    ):
        self.config = config or ApplicationConfig()
        self.router = router or EventRouter()
        self.journal = journal or HistoryJournal(self.config.history.file_path)
        self.error_handler = error_handler or ErrorHandler(logger)
        self.reconnect_policy = reconnect_policy or ReconnectPolicy.from_config(
            self.config.reconnect
        )
        self._connector = connector or open_websocket
        self.on_event = on_event
        self.on_state_change = on_state_change
        self.on_fatal_error = on_fatal_error

        self._state = ConnectionState.IDLE
        self._state_changed = asyncio.Event()
        self._attempt = 0
        self._generation = 0
        self._ended = False
        self.last_error: Optional[Exception] = None

        self._url: Optional[str] = None
        self._headers: Dict[str, str] = {}
        self._connection: Any = None
        self._timer: Optional[asyncio.TimerHandle] = None

        self._commands: asyncio.Queue = asyncio.Queue()
        self._notifications: asyncio.Queue = asyncio.Queue()
        self._receivers: List[asyncio.Future] = []

        self._actor_task: Optional[asyncio.Task] = None
        self._dispatch_task: Optional[asyncio.Task] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._reader_task: Optional[asyncio.Task] = None

        realtime = self.config.realtime
        self._handshake_frame = self.router.encode(
            ResponseCreateEvent(
                response=ResponseCreateOptions(
                    modalities=realtime.initial_modalities,
                    instructions=realtime.initial_instructions,
                )
            )
        )
        self._trigger_frame = self.router.encode(ResponseCreateEvent())
        self._system_initialized = ConversationItemCreateEvent.text(
            SYSTEM_INITIALIZED_TEXT, role=MessageRole.SYSTEM
        ).to_event()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def reconnect_attempts(self) -> int:
        """Current value of the reconnect counter."""
        return self._attempt

    @property
    def reconnect_pending(self) -> bool:
        return self._timer is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Begin connecting.

        Returns once the first connect attempt has been queued; use
        ``wait_for_state`` to wait for ``OPEN``.

        Raises:
            ValueError: If the connection parameters are incomplete (no credential)
            RuntimeError: If the manager has already been ended
        """
        if self._state is ConnectionState.CLOSED or self._ended:
            raise RuntimeError("ConnectionManager cannot be restarted after it closed")
        if self._actor_task is not None:
            logger.debug("start() called on an already started manager")
            return

        self._url = self.config.realtime.get_websocket_url()
        self._headers = self.config.realtime.get_headers()

        self._actor_task = asyncio.create_task(self._run())
        self._dispatch_task = asyncio.create_task(self._dispatch_loop())
        self._post(_Start())

    async def send(self, event: OutboundEvent) -> bool:
        """
        Journal and transmit an event, followed by a ``response.create`` trigger.

        Args:
            event: ``RealtimeEvent``, typed client event model or a mapping with ``type``

        Returns:
            bool: True if both frames were written; False if the transport
            failed mid-send (the manager then starts reconnecting)

        Raises:
            NotConnected: If the connection is not open; nothing is journaled or sent
            ValueError: If the event cannot be encoded
        """
        if self._state is not ConnectionState.OPEN or self._actor_task is None:
            raise NotConnected(self._state)

        realtime_event = self.router.to_event(event)
        frame = self.router.encode(realtime_event)

        future = asyncio.get_running_loop().create_future()
        self._post(_Send(realtime_event, frame, future))
        return await future

    async def send_text(self, text: str, role: Union[MessageRole, str] = MessageRole.USER) -> bool:
        """Send a ``conversation.item.create`` with a single text part."""
        return await self.send(ConversationItemCreateEvent.text(text, role=MessageRole(role)))

    async def send_audio(
        self,
        audio_b64: str,
        transcript: Optional[str] = None,
        role: Union[MessageRole, str] = MessageRole.USER,
    ) -> bool:
        """Send a ``conversation.item.create`` with a single base64 PCM16 audio part."""
        return await self.send(
            ConversationItemCreateEvent.audio(
                audio_b64, transcript=transcript, role=MessageRole(role)
            )
        )

    async def receive(self, timeout: Optional[float] = None) -> RealtimeEvent:
        """
        Wait for the next decoded inbound event.

        Raises:
            NotConnected: If the manager has not been started or has closed
            asyncio.TimeoutError: If ``timeout`` elapses first
        """
        if self._dispatch_task is None or self._dispatch_task.done():
            raise NotConnected(self._state)

        future = asyncio.get_running_loop().create_future()
        self._receivers.append(future)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            if future in self._receivers:
                self._receivers.remove(future)

    async def wait_for_state(
        self, *states: ConnectionState, timeout: Optional[float] = None
    ) -> ConnectionState:
        """
        Wait until the manager reaches one of ``states``.

        Returns early with ``CLOSED`` if the manager closes first.
        """

        async def _wait() -> ConnectionState:
            while self._state not in states and self._state is not ConnectionState.CLOSED:
                await self._state_changed.wait()
            return self._state

        return await asyncio.wait_for(_wait(), timeout)

    async def end(self) -> None:
        """
        Close the connection and persist the journal.

        Cancels a pending reconnect timer or connect attempt, closes the
        transport, moves to ``CLOSED`` and writes the journal to
        ``config.history.file_path`` when ``persist_on_end`` is set. Calling
        ``end`` again is a no-op.

        Raises:
            PersistenceError: If the journal cannot be written
        """
        if self._ended:
            return
        self._ended = True

        if self._actor_task is not None and not self._actor_task.done():
            future = asyncio.get_running_loop().create_future()
            self._post(_End(future))
            await future
            await self._actor_task
        else:
            await self._shutdown()

        await self._stop_dispatcher()

        if self.config.history.persist_on_end:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None, self.journal.persist, self.config.history.file_path
            )

    def get_status(self) -> Dict[str, Any]:
        """Get a snapshot of the manager's state."""
        return {
            "state": self._state.value,
            "reconnect_attempts": self._attempt,
            "max_reconnect_attempts": self.reconnect_policy.max_attempts,
            "reconnect_pending": self.reconnect_pending,
            "history_records": len(self.journal),
            "last_error": str(self.last_error) if self.last_error else None,
            "url": self._url,
        }

    async def __aenter__(self) -> "ConnectionManager":
        await self.start()
        state = await self.wait_for_state(ConnectionState.OPEN)
        if state is ConnectionState.CLOSED:
            error = self.last_error or NotConnected(state)
            await self.end()
            raise error
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.end()

    # ------------------------------------------------------------------
    # Actor
    # ------------------------------------------------------------------

    def _post(self, command: Any) -> None:
        self._commands.put_nowait(command)

    def _notify(self, notification: Any) -> None:
        self._notifications.put_nowait(notification)

    def _report(
        self,
        error: Exception,
        context: ErrorContext,
        severity: ErrorSeverity,
        operation: str,
        **metadata,
    ) -> None:
        self._notify(_ReportError(error, context, severity, operation, metadata))

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        logger.info(f"Connection state: {old_state.value} -> {new_state.value}")

        if self.on_state_change:
            try:
                self.on_state_change(old_state, new_state)
            except Exception as e:
                logger.error(f"Error in state change callback: {e}")

        self._state_changed.set()
        self._state_changed = asyncio.Event()

    async def _run(self) -> None:
        try:
            while self._state is not ConnectionState.CLOSED:
                command = await self._commands.get()
                try:
                    await self._handle(command)
                except Exception as e:
                    self._on_command_failed(command, e)
        finally:
            await self._drain_commands()

    async def _handle(self, command: Any) -> None:
        if isinstance(command, _Start):
            if self._state is ConnectionState.IDLE:
                self._begin_connect()
        elif isinstance(command, _ConnectSucceeded):
            await self._on_connect_succeeded(command)
        elif isinstance(command, _ConnectFailed):
            await self._on_connect_failed(command)
        elif isinstance(command, _FrameReceived):
            self._on_frame(command)
        elif isinstance(command, _ConnectionLost):
            await self._on_connection_lost(command)
        elif isinstance(command, _ReconnectDue):
            self._on_reconnect_due(command)
        elif isinstance(command, _Send):
            await self._on_send(command)
        elif isinstance(command, _End):
            await self._shutdown()
            _resolve(command.future)
        else:
            logger.warning(f"Unknown command: {command!r}")

    def _on_command_failed(self, command: Any, error: Exception) -> None:
        """Report a failed command and release its caller; the actor keeps running."""
        logger.error(f"Error handling {type(command).__name__}: {error}")
        self._report(
            error,
            ErrorContext.SESSION,
            ErrorSeverity.HIGH,
            "actor",
            command=type(command).__name__,
        )
        if isinstance(command, _Send):
            _reject(command.future, error)
        elif isinstance(command, _End):
            self._set_state(ConnectionState.CLOSED)
            _resolve(command.future)

    async def _drain_commands(self) -> None:
        while not self._commands.empty():
            command = self._commands.get_nowait()
            if isinstance(command, _Send):
                _reject(command.future, NotConnected(self._state))
            elif isinstance(command, _End):
                _resolve(command.future)
            elif isinstance(command, _ConnectSucceeded):
                await self._close_connection(command.connection)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _begin_connect(self) -> None:
        self._generation += 1
        self._set_state(ConnectionState.CONNECTING)
        logger.info(f"Connecting to {self._url} (attempt {self._attempt})")
        self._connect_task = asyncio.create_task(self._connect(self._generation))

    async def _connect(self, generation: int) -> None:
        try:
            connection = await self._connector(
                self._url, self._headers, self.config.websocket
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._post(_ConnectFailed(generation, e))
            return
        self._post(_ConnectSucceeded(generation, connection))

    async def _on_connect_succeeded(self, command: _ConnectSucceeded) -> None:
        if (
            command.generation != self._generation
            or self._state is not ConnectionState.CONNECTING
        ):
            await self._close_connection(command.connection)
            return

        self._connection = command.connection
        self._connect_task = None
        self._attempt = 0
        self._set_state(ConnectionState.OPEN)

        try:
            await self._connection.send(self._handshake_frame)
        except Exception as e:
            await self._handle_transport_failure(e, "handshake")
            return

        self.journal.append(HistoryDirection.SENT, self._system_initialized)
        self._reader_task = asyncio.create_task(
            self._read_loop(self._generation, self._connection)
        )

    async def _on_connect_failed(self, command: _ConnectFailed) -> None:
        if (
            command.generation != self._generation
            or self._state is not ConnectionState.CONNECTING
        ):
            return
        self._connect_task = None
        self._report(
            command.error,
            ErrorContext.TRANSPORT,
            ErrorSeverity.HIGH,
            "connect",
            attempt=self._attempt,
        )
        self._schedule_reconnect()

    def _on_frame(self, command: _FrameReceived) -> None:
        if (
            command.generation != self._generation
            or self._state is not ConnectionState.OPEN
        ):
            return

        try:
            event = self.router.decode(command.raw)
        except MalformedFrame as e:
            self._report(e, ErrorContext.FRAME, ErrorSeverity.MEDIUM, "decode")
            return

        logger.debug(WebSocketUtils.format_event_log(event.kind, event.payload))
        self.journal.append(HistoryDirection.RECEIVED, event)
        self._notify(_Deliver(event))

    async def _on_connection_lost(self, command: _ConnectionLost) -> None:
        if (
            command.generation != self._generation
            or self._state is not ConnectionState.OPEN
        ):
            return
        await self._handle_transport_failure(command.error, "receive")

    def _on_reconnect_due(self, command: _ReconnectDue) -> None:
        self._timer = None
        if (
            command.generation != self._generation
            or self._state is not ConnectionState.RECONNECTING
        ):
            return
        self._attempt += 1
        self._begin_connect()

    async def _on_send(self, command: _Send) -> None:
        if self._state is not ConnectionState.OPEN or self._connection is None:
            _reject(command.future, NotConnected(self._state))
            return

        self.journal.append(HistoryDirection.SENT, command.event)
        try:
            await self._connection.send(command.frame)
            await self._connection.send(self._trigger_frame)
        except Exception as e:
            await self._handle_transport_failure(e, "send")
            _resolve(command.future, False)
            return

        logger.debug(WebSocketUtils.format_event_log(command.event.kind, command.event.payload))
        _resolve(command.future, True)

    async def _handle_transport_failure(self, error: Exception, operation: str) -> None:
        """Drop the current connection after an unsolicited close or I/O error."""
        if not isinstance(error, TransportError):
            error = TransportError(str(error))
        self._report(error, ErrorContext.TRANSPORT, ErrorSeverity.HIGH, operation)

        await _cancel_task(self._reader_task)
        self._reader_task = None
        await self._close_connection(self._connection)
        self._connection = None
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._timer is not None:
            logger.debug("Reconnect already scheduled")
            return

        self._set_state(ConnectionState.RECONNECTING)

        if not self.reconnect_policy.should_retry(self._attempt):
            self._exhaust()
            return

        delay_ms = self.reconnect_policy.next_delay(self._attempt)
        logger.warning(
            f"Connection lost; reconnecting in {delay_ms} ms "
            f"(attempt {self._attempt + 1}/{self.reconnect_policy.max_attempts})"
        )
        self._timer = asyncio.get_running_loop().call_later(
            delay_ms / 1000, self._post, _ReconnectDue(self._generation)
        )

    def _exhaust(self) -> None:
        error = ReconnectExhausted(self._attempt, self.reconnect_policy.max_attempts)
        self.last_error = error
        self._set_state(ConnectionState.CLOSED)
        self._report(
            error,
            ErrorContext.SESSION,
            ErrorSeverity.CRITICAL,
            "reconnect",
            attempts=self._attempt,
        )
        self._notify(_Fatal(error))
        self._notify(_STOP)

    async def _shutdown(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1

        await _cancel_task(self._connect_task)
        self._connect_task = None
        await _cancel_task(self._reader_task)
        self._reader_task = None

        await self._close_connection(self._connection)
        self._connection = None
        self._set_state(ConnectionState.CLOSED)

    async def _close_connection(self, connection: Any) -> None:
        if connection is None:
            return
        try:
            await connection.close()
        except Exception as e:
            logger.warning(f"Error closing connection: {e}")

    # ------------------------------------------------------------------
    # Transport reader
    # ------------------------------------------------------------------

    async def _read_loop(self, generation: int, connection: Any) -> None:
        while True:
            try:
                raw = await connection.recv()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._post(_ConnectionLost(generation, e))
                return
            self._post(_FrameReceived(generation, raw))

    # ------------------------------------------------------------------
    # Dispatcher
    # ------------------------------------------------------------------

    async def _dispatch_loop(self) -> None:
        try:
            while True:
                notification = await self._notifications.get()
                if notification is _STOP:
                    break
                await self._deliver(notification)
        finally:
            for future in self._receivers:
                _reject(future, NotConnected(self._state))
            self._receivers = []

    async def _deliver(self, notification: Any) -> None:
        if isinstance(notification, _Deliver):
            event = notification.event
            await self.router.dispatch(event)
            if self.on_event:
                await self._invoke_callback(self.on_event, event, "event")
            receivers, self._receivers = self._receivers, []
            for future in receivers:
                _resolve(future, event)
        elif isinstance(notification, _ReportError):
            await self.error_handler.handle_error(
                notification.error,
                notification.context,
                notification.severity,
                notification.operation,
                **notification.metadata,
            )
        elif isinstance(notification, _Fatal):
            if self.on_fatal_error:
                await self._invoke_callback(self.on_fatal_error, notification.error, "fatal error")

    async def _invoke_callback(self, callback: Callable, arg: Any, name: str) -> None:
        try:
            if asyncio.iscoroutinefunction(callback):
                await callback(arg)
            else:
                callback(arg)
        except Exception as e:
            logger.error(f"Error in {name} callback: {e}")

    async def _stop_dispatcher(self) -> None:
        if self._dispatch_task is None or self._dispatch_task.done():
            return
        self._notify(_STOP)
        if self._dispatch_task is not asyncio.current_task():
            await self._dispatch_task

"""Session store: per-session connection state guarded by a reader-writer lock."""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from db_session_mcp.core.connection import DatabaseConnection
from db_session_mcp.models.session import SessionState

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Asyncio lock admitting many readers or a single writer.

    Waiting writers block new readers, so a stream of lookups cannot starve
    a connection switch.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._waiting_writers == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class SessionStore:
    """Maps session identifiers to their connection state.

    At most one ``SessionState`` exists per identifier. A state's connection
    is either ``None`` or was answering pings when it was assigned.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SessionState] = {}
        self._lock = ReadWriteLock()

    async def get(self, session_id: str) -> Optional[SessionState]:
        """Return the session's state, or None if it does not exist."""
        async with self._lock.read():
            return self._sessions.get(session_id)

    async def get_or_create(
        self,
        session_id: str,
        connection: Optional[DatabaseConnection] = None,
        name: Optional[str] = None,
    ) -> SessionState:
        """
        Return the session's state, creating it on first use.

        Args:
            session_id: Session identifier; empty means a fresh random one
            connection: Connection for a newly created session
            name: Registry name of that connection

        Returns:
            The existing or newly stored state

        Raises:
            ConnectionFailed: If the supplied connection does not answer a ping;
                nothing is stored in that case
        """
        if session_id:
            async with self._lock.read():
                state = self._sessions.get(session_id)
            if state is not None:
                return state
        else:
            session_id = str(uuid.uuid4())

        async with self._lock.write():
            state = self._sessions.get(session_id)
            if state is not None:
                return state  # Created while waiting for the lock

            if connection is not None:
                await connection.ping()
            state = SessionState(
                session_id=session_id, connection=connection, connection_name=name
            )
            self._sessions[session_id] = state
            logger.debug(f"Created session {session_id}")
            return state

    async def assign(
        self,
        session_id: str,
        connection: DatabaseConnection,
        name: Optional[str] = None,
    ) -> SessionState:
        """
        Switch a session to a new connection.

        The new connection is pinged before the lock is taken and the
        replaced one is disposed after it is released, so other sessions are
        never blocked on network I/O.

        Raises:
            ConnectionFailed: If the new connection does not answer a ping;
                the session keeps its previous connection
        """
        await connection.ping()

        async with self._lock.write():
            state = self._sessions.get(session_id)
            if state is None:
                state = SessionState(session_id=session_id)
                self._sessions[session_id] = state
            previous = state.connection
            state.connection = connection
            state.connection_name = name

        if previous is not None and previous is not connection:
            await previous.dispose()
        return state

    async def close(self, session_id: str) -> None:
        """Remove a session and dispose its connection."""
        async with self._lock.write():
            state = self._sessions.pop(session_id, None)

        if state is not None and state.connection is not None:
            await state.connection.dispose()
            logger.debug(f"Closed session {session_id}")

    async def close_all(self) -> None:
        """Dispose every session's connection; used at shutdown."""
        async with self._lock.write():
            states = list(self._sessions.values())
            self._sessions.clear()

        disposed: set[int] = set()
        for state in states:
            conn = state.connection
            if conn is not None and id(conn) not in disposed:
                disposed.add(id(conn))
                await conn.dispose()

    def __len__(self) -> int:
        return len(self._sessions)

"""
Query execution engine
Runs one untrusted SQL submission against a provisioned challenge database
"""
import aiosqlite
import aiofiles.os
import asyncio
import json
import logging
import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from sqlquest.config import settings

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Query execution timed out"


@dataclass
class ExecutionResult:
    """Tagged result: either rows or an error message, never both"""
    results: Optional[List[Dict[str, Any]]] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def output_json(self) -> Optional[str]:
        """Rows serialized the way they are stored on a submission"""
        if self.error is not None:
            return None
        return json.dumps(self.results, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return str(value)


def split_statements(query: str) -> List[str]:
    """
    Split a statement batch on statement boundaries

    Semicolons inside string literals and comments do not split. Trailing
    text without a terminating semicolon is kept so the engine can run or
    reject it.
    """
    statements = []
    buffer = ""
    parts = query.split(";")

    for index, part in enumerate(parts):
        buffer += part
        if index < len(parts) - 1:
            buffer += ";"
            if sqlite3.complete_statement(buffer):
                if buffer.strip(" \t\r\n;"):
                    statements.append(buffer.strip())
                buffer = ""

    if buffer.strip(" \t\r\n;"):
        statements.append(buffer.strip())

    return statements


class ExecutionService:
    """
    Executes learner SQL with a wall-clock timeout

    Each call opens its own connection and releases it on every exit path.
    No statement allowlisting happens here: destructive statements are
    committed and persist until the challenge database is provisioned again.

    Timeouts: SQLite offers no true cancellation. When the timeout wins the
    race the caller gets an error immediately, the engine is asked to
    interrupt() the running statement and the abandoned connection is handed
    to a background reaper that closes it once the worker unwinds. The
    statement may keep running briefly after the caller has moved on.
    Cancellation of the calling task is handled the same way.

    Batches: every statement in a batch runs, in order, and the rows of the
    last result-producing statement are returned. A plain single-statement
    driver call would run only the first statement and ignore the rest, so
    trailing statements here (including destructive ones) do take effect.
    """

    def __init__(self, db_dir: str = None, timeout_seconds: float = None):
        self.db_dir = db_dir or settings.CHALLENGE_DB_DIR
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.QUERY_TIMEOUT_SECONDS
        self._reaper_tasks: Set[asyncio.Task] = set()

    async def execute(self, query: str, database_file: str) -> ExecutionResult:
        """
        Execute a query against a challenge database

        Args:
            query: Learner-submitted SQL (one statement or a batch)
            database_file: File name of a provisioned challenge database

        Returns:
            ExecutionResult with rows of the last result-producing statement,
            or with an error message. Never raises for SQL problems.
        """
        db_path = os.path.join(self.db_dir, database_file)

        if not await aiofiles.os.path.isfile(db_path):
            return ExecutionResult(error=f"Database file not found: {database_file}")

        conn = None
        try:
            # Autocommit, matching a driver that commits each statement
            conn = await aiosqlite.connect(db_path, isolation_level=None)
            conn.row_factory = aiosqlite.Row

            rows = await asyncio.wait_for(
                self._run_statements(conn, query),
                timeout=self.timeout_seconds
            )
            return ExecutionResult(results=rows)

        except asyncio.TimeoutError:
            logger.warning(f"Query timed out after {self.timeout_seconds}s on {database_file}")
            if conn is not None:
                await conn.interrupt()
                self._reap(conn)
                conn = None
            return ExecutionResult(error=TIMEOUT_MESSAGE)

        except asyncio.CancelledError:
            # close() would queue behind the running statement on the worker thread
            logger.warning(f"Query execution cancelled on {database_file}")
            if conn is not None:
                await conn.interrupt()
                self._reap(conn)
                conn = None
            raise

        except Exception as e:
            logger.info(f"SQL execution error: {str(e)}")
            return ExecutionResult(error=str(e))

        finally:
            if conn is not None:
                await conn.close()

    async def _run_statements(self, conn: aiosqlite.Connection, query: str) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []

        for statement in split_statements(query):
            cursor = await conn.execute(statement)
            try:
                fetched = await cursor.fetchall()
                # DDL/DML and comment-only statements produce no result set
                if cursor.description is not None:
                    rows = [dict(row) for row in fetched]
            finally:
                await cursor.close()

        return rows

    def _reap(self, conn: aiosqlite.Connection) -> None:
        task = asyncio.create_task(self._close_abandoned(conn))
        self._reaper_tasks.add(task)
        task.add_done_callback(self._reaper_tasks.discard)

    async def _close_abandoned(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.close()
            logger.debug("Closed abandoned connection after timeout")
        except Exception as e:
            logger.warning(f"Failed to close abandoned connection: {str(e)}")

    async def drain(self) -> None:
        """Wait for abandoned connections to be closed (used on shutdown)"""
        if self._reaper_tasks:
            await asyncio.gather(*self._reaper_tasks, return_exceptions=True)


# Global instance
execution_service = ExecutionService()

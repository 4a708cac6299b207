"""
Base service class for the Lights Out League bot.

Gives every store-backed service a transactional session scope and a retry
helper that turns persistent SQLAlchemy failures into DatabaseError.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable, TypeVar
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lightsout.utils.leaderboard_exceptions import DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar('T')

class BaseService:
    """Base class for services that talk to the league database."""

    def __init__(self, session_factory):
        """
        Args:
            session_factory: Async session factory from Database class
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Transactional scope: commit on success, roll back on any error."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def execute_with_retry(self, operation: str, func: Callable[[], Awaitable[T]],
                                 max_retries: int = 3) -> T:
        """
        Run a store operation, retrying transient lock/connection errors.

        Args:
            operation: Name used in logs and in the raised DatabaseError
            func: Zero-argument coroutine function doing the work
            max_retries: Attempts before giving up

        Raises:
            DatabaseError: when the last attempt still fails at the SQL layer
        """
        for attempt in range(max_retries):
            try:
                return await func()
            except OperationalError as e:
                if attempt == max_retries - 1:
                    logger.error(f"{operation} failed after {max_retries} attempts: {e}")
                    raise DatabaseError(operation, str(e)) from e
                logger.warning(f"Retry attempt {attempt + 1} for {operation}: {e}")
                await asyncio.sleep(0.1 * (2 ** attempt))  # Exponential backoff
            except SQLAlchemyError as e:
                logger.error(f"{operation} failed: {e}")
                raise DatabaseError(operation, str(e)) from e

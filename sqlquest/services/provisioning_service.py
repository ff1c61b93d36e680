"""
Challenge database provisioning
Creates and destroys the per-challenge SQLite files learners query against
"""
import aiosqlite
import aiofiles.os
import logging
import os
import uuid

from sqlquest.config import settings

logger = logging.getLogger(__name__)


class ProvisioningService:
    """
    Materializes an isolated SQLite database from a schema script

    Every challenge owns one file in a flat directory. Provisioning is a
    full reset: an existing file of the same name is removed before the
    schema script runs. Name uniqueness is the caller's responsibility.
    """

    def __init__(self, db_dir: str = None):
        self.db_dir = db_dir or settings.CHALLENGE_DB_DIR

    def generate_file_name(self) -> str:
        """Globally unique database file name"""
        return f"{uuid.uuid4()}.db"

    def database_path(self, file_name: str) -> str:
        return os.path.join(self.db_dir, file_name)

    async def exists(self, file_name: str) -> bool:
        return await aiofiles.os.path.isfile(self.database_path(file_name))

    async def provision(self, schema_sql: str, file_name: str) -> bool:
        """
        Create (or recreate) a challenge database

        Args:
            schema_sql: DDL plus seed data, executed as one batch
            file_name: Database file name inside the challenge directory

        Returns:
            True on success. On failure the partial file is removed.
        """
        await aiofiles.os.makedirs(self.db_dir, exist_ok=True)
        db_path = self.database_path(file_name)

        if await aiofiles.os.path.exists(db_path):
            await aiofiles.os.remove(db_path)

        try:
            async with aiosqlite.connect(db_path) as conn:
                await conn.executescript(schema_sql)
                await conn.commit()
        except Exception as e:
            logger.error(f"Database initialization error for {file_name}: {str(e)}")
            # SQLite has no transactional guarantee across a DDL script
            await self._remove_quietly(db_path)
            return False

        logger.info(f"Provisioned challenge database: {file_name}")
        return True

    async def destroy(self, file_name: str) -> bool:
        """Delete a challenge database; False if it was not there"""
        db_path = self.database_path(file_name)
        if not await aiofiles.os.path.exists(db_path):
            return False

        await aiofiles.os.remove(db_path)
        logger.info(f"Removed challenge database: {file_name}")
        return True

    async def _remove_quietly(self, db_path: str) -> None:
        try:
            if await aiofiles.os.path.exists(db_path):
                await aiofiles.os.remove(db_path)
        except OSError as e:
            logger.warning(f"Could not remove partial database {db_path}: {str(e)}")


# Global instance
provisioning_service = ProvisioningService()

"""
Challenge lifecycle service
Pairs challenge records with their provisioned databases
"""
import json
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlquest.models import Challenge
from sqlquest.services.provisioning_service import provisioning_service, ProvisioningService
from sqlquest.utils.sample_challenges import SAMPLE_CHALLENGES

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """The challenge database could not be created from its schema"""


class ChallengeService:
    """Create, update, reset and delete challenges together with their databases"""

    def __init__(self, provisioner: Optional[ProvisioningService] = None):
        self.provisioner = provisioner or provisioning_service

    def get_challenge(self, db: Session, challenge_id: str) -> Optional[Challenge]:
        return db.query(Challenge).filter(Challenge.id == challenge_id).first()

    async def create_challenge(self, db: Session, data: Dict[str, Any]) -> Challenge:
        """
        Provision a fresh database and store the challenge

        Args:
            db: Database session
            data: Challenge fields (schema_sql, test_cases, hints, ...)

        Raises:
            ProvisioningError: the schema script failed to execute
        """
        database_file = self.provisioner.generate_file_name()

        if not await self.provisioner.provision(data["schema_sql"], database_file):
            raise ProvisioningError(f"Failed to initialize database for challenge: {data.get('title')}")

        challenge = Challenge(
            title=data["title"],
            description=data["description"],
            difficulty=data["difficulty"],
            category=data["category"],
            initial_code=data.get("initial_code") or "-- Write your SQL query here",
            schema_sql=data["schema_sql"],
            database_file=database_file,
            test_cases=self._serialize_test_cases(data.get("test_cases", [])),
            hints=list(data.get("hints", [])),
            reward_xp=data.get("reward_xp", 10),
            order=data.get("order", 0),
        )

        try:
            db.add(challenge)
            db.commit()
            db.refresh(challenge)
        except Exception:
            db.rollback()
            await self.provisioner.destroy(database_file)
            raise

        logger.info(f"Created challenge: {challenge.title} ({challenge.id})")
        return challenge

    async def update_challenge(self, db: Session, challenge: Challenge, data: Dict[str, Any]) -> Challenge:
        """
        Apply a partial update to a challenge

        A changed schema_sql is provisioned into a new database file first;
        the old file is only removed once the update is committed.

        Args:
            db: Database session
            challenge: Challenge to update
            data: Fields to change (unset or None fields are left alone)

        Raises:
            ProvisioningError: the new schema script failed to execute
        """
        fields = {key: value for key, value in data.items() if value is not None}
        old_database_file = None
        new_database_file = None

        if "schema_sql" in fields and fields["schema_sql"] != challenge.schema_sql:
            new_database_file = self.provisioner.generate_file_name()
            if not await self.provisioner.provision(fields["schema_sql"], new_database_file):
                raise ProvisioningError(f"Failed to initialize database for challenge: {challenge.title}")
            old_database_file = challenge.database_file
            challenge.database_file = new_database_file

        if "test_cases" in fields:
            fields["test_cases"] = self._serialize_test_cases(fields["test_cases"])
        if "hints" in fields:
            fields["hints"] = list(fields["hints"])

        for key, value in fields.items():
            setattr(challenge, key, value)
        challenge.updated_at = func.now()

        try:
            db.commit()
            db.refresh(challenge)
        except Exception:
            db.rollback()
            if new_database_file:
                await self.provisioner.destroy(new_database_file)
            raise

        if old_database_file:
            await self.provisioner.destroy(old_database_file)
            logger.info(f"Re-provisioned database for challenge {challenge.id}")

        logger.info(f"Updated challenge {challenge.id}")
        return challenge

    async def reset_challenge(self, challenge: Challenge) -> bool:
        """Re-provision a challenge database from its schema"""
        success = await self.provisioner.provision(challenge.schema_sql, challenge.database_file)
        if success:
            logger.info(f"Reset database for challenge {challenge.id}")
        return success

    async def delete_challenge(self, db: Session, challenge: Challenge) -> None:
        database_file = challenge.database_file
        db.delete(challenge)
        db.commit()
        await self.provisioner.destroy(database_file)
        logger.info(f"Deleted challenge {challenge.id}")

    async def seed_sample_challenges(self, db: Session) -> int:
        """
        Provision the sample challenges when none exist

        Returns:
            Number of challenges created
        """
        if db.query(Challenge).count() > 0:
            logger.info("Sample challenges already exist, skipping initialization")
            return 0

        logger.info("Initializing sample challenges...")
        created = 0

        for sample in SAMPLE_CHALLENGES:
            try:
                await self.create_challenge(db, sample)
                created += 1
            except ProvisioningError as e:
                logger.error(str(e))

        logger.info(f"Sample challenges initialized: {created}/{len(SAMPLE_CHALLENGES)}")
        return created

    @classmethod
    def _serialize_test_cases(cls, test_cases: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {
                "input": tc.get("input"),
                "expected_output": cls._serialize(tc.get("expected_output")),
                "is_hidden": bool(tc.get("is_hidden", False)),
            }
            for tc in test_cases
        ]

    @staticmethod
    def _serialize(expected: Any) -> Optional[str]:
        if expected is None or isinstance(expected, str):
            return expected
        return json.dumps(expected)


# Global instance
challenge_service = ChallengeService()

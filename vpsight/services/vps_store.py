"""
VPS Store Service

Create/read/update/delete for VPS instance records.
"""

import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete

from ..config import settings
from ..models.database import VpsInstance, get_db_context

logger = logging.getLogger(__name__)


def generate_secret() -> str:
    """Random agent secret used to pair an agent with its record."""
    return secrets.token_hex(16)


def build_install_command(secret: str, base_url: Optional[str] = None) -> str:
    """Shell one-liner that installs the agent for a record."""
    base = (base_url if base_url is not None else settings.server.public_url).rstrip("/")
    return f"curl -sSL {base}/install_agent.sh | sudo bash -s {secret}"


class VpsStore:
    """Record store for VPS instances. Every call runs in its own transaction."""

    async def insert(self, fields: Dict[str, Any]) -> int:
        """Insert a record and return its id."""
        async with get_db_context() as db:
            secret = generate_secret()
            instance = VpsInstance(
                secret=secret,
                install_command=build_install_command(secret),
                **fields
            )
            db.add(instance)
            await db.flush()

            logger.info(f"Created VPS instance {instance.id} ({instance.name})")
            return instance.id

    async def get_by_id(self, record_id: int) -> Optional[VpsInstance]:
        """Get a record by ID."""
        async with get_db_context() as db:
            result = await db.execute(
                select(VpsInstance).where(VpsInstance.id == record_id)
            )
            return result.scalar_one_or_none()

    async def list_all(self) -> List[VpsInstance]:
        """All records, newest first."""
        async with get_db_context() as db:
            result = await db.execute(
                select(VpsInstance).order_by(
                    VpsInstance.created_at.desc(), VpsInstance.id.desc()
                )
            )
            return list(result.scalars().all())

    async def update(self, record_id: int, fields: Dict[str, Any]) -> int:
        """
        Overwrite fields of one record in a single UPDATE statement.

        Returns the number of rows affected (0 when the record is gone).
        """
        if not fields:
            return 1 if await self.get_by_id(record_id) else 0

        async with get_db_context() as db:
            result = await db.execute(
                update(VpsInstance)
                .where(VpsInstance.id == record_id)
                .values(updated_at=datetime.utcnow(), **fields)
            )
            rows = result.rowcount

        if rows:
            logger.info(f"Updated VPS instance {record_id}: {', '.join(sorted(fields))}")
        return rows

    async def delete(self, record_id: int) -> int:
        """Delete a record. Returns the number of rows affected."""
        async with get_db_context() as db:
            result = await db.execute(
                delete(VpsInstance).where(VpsInstance.id == record_id)
            )
            rows = result.rowcount

        if rows:
            logger.info(f"Deleted VPS instance {record_id}")
        return rows

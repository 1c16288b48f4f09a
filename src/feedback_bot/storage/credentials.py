"""Per-workspace credential storage with encrypted tokens."""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from feedback_bot.errors import StorageError
from feedback_bot.storage.encryption import TokenCipher
from feedback_bot.storage.tables import TeamCredential

logger = logging.getLogger(__name__)


class CredentialStore:
    """Reads and writes TeamCredential rows.

    Tokens are encrypted before they reach the session and decrypted only by
    access_token(), never written back in plaintext.
    """

    def __init__(self, session_maker, cipher: TokenCipher) -> None:
        self._session_maker = session_maker
        self._cipher = cipher

    async def get(self, team_id: str) -> TeamCredential | None:
        """Return the active credential for a team, or None.

        Invalidated rows (no token, or is_active False) count as missing.
        """
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(TeamCredential).where(TeamCredential.team_id == team_id)
                )
                credential = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Credential lookup failed for team {team_id}") from exc

        if credential is None or not credential.is_active or not credential.encrypted_access_token:
            return None
        return credential

    async def list_active(self) -> list[TeamCredential]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(TeamCredential).where(TeamCredential.is_active.is_(True))  # type: ignore[attr-defined]
                )
                return [c for c in result.scalars().all() if c.encrypted_access_token]
        except SQLAlchemyError as exc:
            raise StorageError("Failed to list credentials") from exc

    async def upsert(
        self,
        team_id: str,
        access_token: str,
        bot_user_id: str,
        team_name: str | None = None,
        hub_channel_id: str | None = None,
    ) -> TeamCredential:
        """Create or replace a team's credential (install / reinstall).

        A reinstall keeps the previous hub channel when the new install names none.
        """
        encrypted = self._cipher.encrypt(access_token)
        now = datetime.now(UTC)
        try:
            async with self._session_maker() as session:
                credential = await session.get(TeamCredential, team_id)
                if credential is None:
                    credential = TeamCredential(
                        team_id=team_id,
                        team_name=team_name,
                        encrypted_access_token=encrypted,
                        bot_user_id=bot_user_id,
                        hub_channel_id=hub_channel_id,
                    )
                    session.add(credential)
                else:
                    credential.encrypted_access_token = encrypted
                    credential.bot_user_id = bot_user_id
                    credential.team_name = team_name or credential.team_name
                    credential.hub_channel_id = hub_channel_id or credential.hub_channel_id
                    credential.is_active = True
                    credential.updated_at = now
                await session.commit()
                await session.refresh(credential)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store credential for team {team_id}") from exc

        logger.info("Credential stored", extra={"team_id": team_id})
        return credential

    async def invalidate(self, team_id: str) -> None:
        """Drop the stored token and mark the credential inactive."""
        try:
            async with self._session_maker() as session:
                credential = await session.get(TeamCredential, team_id)
                if credential is None:
                    return
                credential.encrypted_access_token = None
                credential.is_active = False
                credential.updated_at = datetime.now(UTC)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to invalidate credential for team {team_id}") from exc

        logger.warning("Credential invalidated", extra={"team_id": team_id})

    def access_token(self, credential: TeamCredential) -> str:
        """Decrypt the credential's token for immediate use."""
        if not credential.encrypted_access_token:
            raise StorageError(f"Credential for team {credential.team_id} has no token")
        return self._cipher.decrypt(credential.encrypted_access_token)

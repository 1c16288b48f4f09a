"""Team → Notion database links."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from feedback_bot.errors import StorageError
from feedback_bot.storage.tables import NotionDatabaseLink


class NotionLinkStore:
    """Reads and claims NotionDatabaseLink rows.

    claim() is the provisioning lock: the insert either creates the team's
    link or loses to an existing row, in which case the existing row is returned.
    """

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def get(self, team_id: str) -> NotionDatabaseLink | None:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(NotionDatabaseLink).where(NotionDatabaseLink.team_id == team_id)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Notion link lookup failed for team {team_id}") from exc

    async def claim(self, team_id: str, database_id: str) -> NotionDatabaseLink:
        """Insert the link if absent; return whichever link ends up stored."""
        try:
            async with self._session_maker() as session:
                link = NotionDatabaseLink(team_id=team_id, database_id=database_id)
                session.add(link)
                await session.commit()
                return link
        except IntegrityError:
            existing = await self.get(team_id)
            if existing is None:
                raise StorageError(f"Notion link for team {team_id} vanished after conflict")
            return existing
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store Notion link for team {team_id}") from exc

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from .models import BoardList, Card

logger = logging.getLogger(__name__)


class BoardFetchError(RuntimeError):
    """Raised when lists or cards cannot be loaded from the record store."""


class NotAuthenticatedError(BoardFetchError):
    """Raised when a repository that requires an owner has none."""


class BoardDataRepository:
    """
    Interface for loading board data.

    Implementations return plain tuples of ``BoardList``/``Card`` records and
    raise ``BoardFetchError`` when the store cannot be read. They know nothing
    about aggregation.
    """

    async def fetch_lists(self) -> Sequence[BoardList]:
        raise NotImplementedError

    async def fetch_cards(self, list_id: Optional[str] = None) -> Sequence[Card]:
        raise NotImplementedError


class InMemoryBoardRepository(BoardDataRepository):
    def __init__(self, lists: Iterable[BoardList] = (), cards: Iterable[Card] = ()):
        self.lists = tuple(lists)
        self.cards = tuple(cards)

    async def fetch_lists(self) -> Sequence[BoardList]:
        return self.lists

    async def fetch_cards(self, list_id: Optional[str] = None) -> Sequence[Card]:
        if list_id:
            return tuple(card for card in self.cards if card.list_id == list_id)
        return self.cards


class SQLBoardRepository(BoardDataRepository):
    """
    Load lists/cards from the board schema.

    Expected tables:
      - lists(id, title, position, user_id, created_at)
      - cards(id, title, description, position, list_id, status, priority, created_at)

    Cards are joined to their list so that only cards of the owner's lists are
    returned; cards pointing at a missing list are never loaded.
    """

    def __init__(self, engine: Engine, owner_id: Optional[str] = None, require_owner: bool = False):
        self.engine = engine
        self.owner_id = owner_id
        self.require_owner = require_owner

    def for_owner(self, owner_id: Optional[str]) -> "SQLBoardRepository":
        return SQLBoardRepository(self.engine, owner_id=owner_id, require_owner=self.require_owner)

    async def fetch_lists(self) -> Sequence[BoardList]:
        self._check_owner()
        return await asyncio.to_thread(self._load_lists)

    async def fetch_cards(self, list_id: Optional[str] = None) -> Sequence[Card]:
        self._check_owner()
        return await asyncio.to_thread(self._load_cards, list_id)

    def _check_owner(self) -> None:
        if self.require_owner and not self.owner_id:
            raise NotAuthenticatedError("No authenticated owner for board query.")

    def _load_lists(self) -> Sequence[BoardList]:
        sql = "SELECT id, title, position, user_id, created_at FROM lists"
        params: Dict[str, Any] = {}
        if self.owner_id:
            sql += " WHERE user_id = :owner_id"
            params["owner_id"] = self.owner_id
        sql += " ORDER BY position ASC"
        rows = self._execute(sql, params, "lists")
        return tuple(self._row_to_list(row) for row in rows)

    def _load_cards(self, list_id: Optional[str]) -> Sequence[Card]:
        conditions: List[str] = []
        params: Dict[str, Any] = {}
        if self.owner_id:
            conditions.append("l.user_id = :owner_id")
            params["owner_id"] = self.owner_id
        if list_id:
            conditions.append("c.list_id = :list_id")
            params["list_id"] = list_id

        sql = """
            SELECT c.id, c.title, c.description, c.position, c.list_id,
                   c.status, c.priority, c.created_at
            FROM cards c
            JOIN lists l ON l.id = c.list_id
        """
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY c.list_id ASC, c.position ASC"
        rows = self._execute(sql, params, "cards")
        return tuple(self._row_to_card(row) for row in rows)

    def _execute(self, sql: str, params: Dict[str, Any], label: str) -> Sequence[Row]:
        try:
            with self.engine.connect() as connection:
                return connection.execute(text(sql), params).fetchall()
        except SQLAlchemyError as exc:
            logger.warning("Error fetching %s: %s", label, exc)
            raise BoardFetchError(f"Failed to fetch {label}: {exc}") from exc

    @staticmethod
    def _row_to_list(row: Row) -> BoardList:
        return BoardList(
            id=str(row.id),
            title=str(row.title or ""),
            owner_id=str(row.user_id or ""),
            position=row.position,
            created_at=row.created_at,
        )

    @staticmethod
    def _row_to_card(row: Row) -> Card:
        return Card(
            id=str(row.id),
            title=str(row.title or ""),
            list_id=str(row.list_id),
            description=row.description,
            position=row.position,
            status=row.status,
            priority=row.priority,
            created_at=row.created_at,
        )


@dataclass(frozen=True)
class RepositoryConfig:
    database_url: Optional[str] = None
    require_owner: bool = False

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        return cls(
            database_url=os.getenv("BOARD_DASHBOARD_DATABASE_URL"),
            require_owner=os.getenv("BOARD_DASHBOARD_REQUIRE_OWNER", "").lower() in {"1", "true", "yes", "on"},
        )


def build_repository_from_env(config: Optional[RepositoryConfig] = None) -> Optional[SQLBoardRepository]:
    cfg = config or RepositoryConfig.from_env()
    if cfg.database_url:
        engine = create_engine(cfg.database_url)
        return SQLBoardRepository(engine, require_owner=cfg.require_owner)
    return None

"""FastAPI server that exposes the task-board dashboard statistics."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .configuration import load_dashboard_config
from .models import BoardList, Card
from .repository import (
    BoardDataRepository,
    InMemoryBoardRepository,
    SQLBoardRepository,
    build_repository_from_env,
)
from .service import DashboardStatsComposer

load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="Trilou Dashboard API", version="0.1.0")
repository: Optional[SQLBoardRepository] = build_repository_from_env()

# The chart front end is served from a different origin during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ListPayload(BaseModel):
    id: str
    title: str
    position: Optional[float] = None
    user_id: str = ""
    created_at: Optional[Union[datetime, str]] = None


class CardPayload(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    position: Optional[float] = None
    list_id: str
    status: Optional[str] = None
    priority: Optional[str] = None
    created_at: Optional[Union[datetime, str]] = None


class InlineStatsRequest(BaseModel):
    lists: List[ListPayload] = Field(default_factory=list)
    cards: List[CardPayload] = Field(default_factory=list)


class StatsResponse(BaseModel):
    data: Dict[str, Any]
    source: str
    failed: bool = False
    error: Optional[str] = None


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/stats", response_model=StatsResponse)
async def stats_endpoint(owner_id: Optional[str] = Query(None)) -> StatsResponse:
    if repository is None:
        raise HTTPException(
            status_code=500,
            detail=(
                "BOARD_DASHBOARD_DATABASE_URL is not configured; "
                "POST lists+cards to /stats for ad-hoc reports."
            ),
        )
    return await _compose(repository.for_owner(owner_id), "database")


@app.post("/stats", response_model=StatsResponse)
async def inline_stats_endpoint(request: InlineStatsRequest) -> StatsResponse:
    lists, cards = _convert_payload(request)
    return await _compose(InMemoryBoardRepository(lists=lists, cards=cards), "inline")


async def _compose(source_repository: BoardDataRepository, source: str) -> StatsResponse:
    composer = DashboardStatsComposer.from_repository(source_repository, config=load_dashboard_config())
    result = await composer.compose_with_status()
    if result.failed:
        logger.warning("Serving empty dashboard from %s source: %s", source, result.error)
    return StatsResponse(data=result.stats.as_dict(), source=source, failed=result.failed, error=result.error)


def _convert_payload(request: InlineStatsRequest) -> Tuple[Sequence[BoardList], Sequence[Card]]:
    lists = tuple(
        BoardList(
            id=payload.id,
            title=payload.title,
            owner_id=payload.user_id,
            position=payload.position,
            created_at=payload.created_at,
        )
        for payload in request.lists
    )
    cards = tuple(
        Card(
            id=payload.id,
            title=payload.title,
            list_id=payload.list_id,
            description=payload.description,
            position=payload.position,
            status=payload.status,
            priority=payload.priority,
            created_at=payload.created_at,
        )
        for payload in request.cards
    )
    return lists, cards

import pytest
from sqlalchemy import create_engine, text

from board_dashboard.repository import (
    BoardFetchError,
    InMemoryBoardRepository,
    NotAuthenticatedError,
    RepositoryConfig,
    SQLBoardRepository,
    build_repository_from_env,
)
from board_dashboard.models import BoardList, Card
from board_dashboard.service import DashboardStatsComposer


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'board.db'}",
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as connection:
        connection.execute(
            text("CREATE TABLE lists (id TEXT PRIMARY KEY, title TEXT, position REAL, user_id TEXT, created_at TEXT)")
        )
        connection.execute(
            text(
                "CREATE TABLE cards (id TEXT PRIMARY KEY, title TEXT, description TEXT, position REAL, "
                "list_id TEXT, status TEXT, priority TEXT, created_at TEXT)"
            )
        )
        connection.execute(
            text("INSERT INTO lists VALUES (:id, :title, :position, :user_id, NULL)"),
            [
                {"id": "L2", "title": "Done", "position": 2, "user_id": "u1"},
                {"id": "L1", "title": "Todo", "position": 1, "user_id": "u1"},
                {"id": "L9", "title": "Other", "position": 1, "user_id": "u2"},
            ],
        )
        connection.execute(
            text("INSERT INTO cards VALUES (:id, :title, NULL, :position, :list_id, :status, :priority, :created_at)"),
            [
                {"id": "C2", "title": "b", "position": 1, "list_id": "L2", "status": None, "priority": "high",
                 "created_at": "2024-05-10T09:00:00+00:00"},
                {"id": "C1", "title": "a", "position": 1, "list_id": "L1", "status": "open", "priority": None,
                 "created_at": "2024-05-10T09:00:00+00:00"},
                {"id": "C3", "title": "c", "position": 2, "list_id": "L1", "status": "done", "priority": "low",
                 "created_at": None},
                {"id": "C9", "title": "z", "position": 1, "list_id": "L9", "status": None, "priority": None,
                 "created_at": None},
                {"id": "C0", "title": "orphan", "position": 1, "list_id": "nowhere", "status": None,
                 "priority": None, "created_at": None},
            ],
        )
    return engine


async def test_sql_lists_are_ordered_by_position_and_scoped_to_owner(engine):
    repository = SQLBoardRepository(engine, owner_id="u1")
    lists = await repository.fetch_lists()
    assert [board_list.id for board_list in lists] == ["L1", "L2"]
    assert lists[0] == BoardList(id="L1", title="Todo", owner_id="u1", position=1.0, created_at=None)


async def test_sql_cards_join_owner_lists_and_skip_orphans(engine):
    repository = SQLBoardRepository(engine, owner_id="u1")
    cards = await repository.fetch_cards()
    assert [card.id for card in cards] == ["C1", "C3", "C2"]
    assert cards[0].created_at == "2024-05-10T09:00:00+00:00"


async def test_sql_cards_filtered_by_list(engine):
    repository = SQLBoardRepository(engine)
    cards = await repository.fetch_cards("L2")
    assert [card.id for card in cards] == ["C2"]


async def test_sql_repository_without_owner_reads_everything(engine):
    repository = SQLBoardRepository(engine)
    assert len(await repository.fetch_lists()) == 3
    assert len(await repository.fetch_cards()) == 4


async def test_required_owner_raises_not_authenticated(engine):
    repository = SQLBoardRepository(engine, require_owner=True)
    with pytest.raises(NotAuthenticatedError):
        await repository.fetch_lists()
    assert len(await repository.for_owner("u1").fetch_lists()) == 2


async def test_sql_errors_are_wrapped(tmp_path):
    repository = SQLBoardRepository(create_engine(f"sqlite:///{tmp_path / 'empty.db'}"))
    with pytest.raises(BoardFetchError):
        await repository.fetch_cards()


async def test_composer_over_sql_repository(engine, clock):
    composer = DashboardStatsComposer.from_repository(SQLBoardRepository(engine, owner_id="u1"), clock=clock)
    stats = await composer.compose()
    assert (stats.total_lists, stats.total_cards) == (2, 3)
    # C2 sits in "Done", C3 has status "done".
    assert stats.completion_rate == 67
    assert [(row.name, row.cards) for row in stats.list_activity] == [("Todo", 2), ("Done", 1)]


async def test_composer_over_broken_sql_repository_flags_error(tmp_path, clock):
    repository = SQLBoardRepository(create_engine(f"sqlite:///{tmp_path / 'empty.db'}"))
    result = await DashboardStatsComposer.from_repository(repository, clock=clock).compose_with_status()
    assert result.failed is True
    assert result.stats.total_cards == 0


async def test_in_memory_repository_filters_by_list():
    repository = InMemoryBoardRepository(
        cards=[Card(id="1", title="1", list_id="A"), Card(id="2", title="2", list_id="B")]
    )
    assert [card.id for card in await repository.fetch_cards("B")] == ["2"]
    assert len(await repository.fetch_cards()) == 2


def test_build_repository_from_env(monkeypatch, tmp_path):
    monkeypatch.delenv("BOARD_DASHBOARD_DATABASE_URL", raising=False)
    assert build_repository_from_env() is None

    monkeypatch.setenv("BOARD_DASHBOARD_DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
    monkeypatch.setenv("BOARD_DASHBOARD_REQUIRE_OWNER", "true")
    config = RepositoryConfig.from_env()
    assert config.require_owner is True
    repository = build_repository_from_env(config)
    assert isinstance(repository, SQLBoardRepository)
    assert repository.require_owner is True

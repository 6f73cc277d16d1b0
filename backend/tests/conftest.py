from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from clubbracket.database import get_session, import_models
from clubbracket.main import app
from clubbracket.models import (
    GroupStanding,
    MatchFormat,
    Stage,
    StageType,
    Tournament,
    TournamentGroup,
    TournamentParticipant,
)

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are dropped and recreated per test, so every test starts empty
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a freshly created schema"""
    import_models()
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Data builders
# ============================================================================


def make_tournament(session: Session, name: str = "Club Open", match_format: MatchFormat = MatchFormat.SINGLES):
    tournament = Tournament(name=name, match_format=match_format)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


def make_stage(session: Session, tournament_id: int, stage_type: StageType = StageType.KNOCKOUT, name: str = "Knockout"):
    stage = Stage(tournament_id=tournament_id, name=name, type=stage_type)
    session.add(stage)
    session.commit()
    session.refresh(stage)
    return stage


def make_participants(session: Session, tournament_id: int, count: int, prefix: str = "Player") -> List[TournamentParticipant]:
    participants = [
        TournamentParticipant(tournament_id=tournament_id, display_name=f"{prefix} {i}") for i in range(1, count + 1)
    ]
    for p in participants:
        session.add(p)
    session.commit()
    for p in participants:
        session.refresh(p)
    return participants


def make_group_stage(
    session: Session,
    tournament_id: int,
    groups: int,
    per_group: int,
    ranked: bool = True,
    points: Optional[Dict[int, List[int]]] = None,
) -> Dict:
    """
    Group stage with `groups` groups of `per_group` participants and standings.

    Participant at position r (1-based) of a group gets rank r (or None if not ranked)
    and match points from `points[group_index]` when given.
    """
    stage = make_stage(session, tournament_id, StageType.GROUP, name="Groups")
    result = {"stage": stage, "groups": [], "standings": {}}
    for g in range(groups):
        group = TournamentGroup(stage_id=stage.id, name=f"Group {chr(65 + g)}")
        session.add(group)
        session.commit()
        session.refresh(group)
        members = make_participants(session, tournament_id, per_group, prefix=f"G{chr(65 + g)}")
        for r, participant in enumerate(members, start=1):
            session.add(
                GroupStanding(
                    group_id=group.id,
                    tournament_participant_id=participant.id,
                    rank=r if ranked else None,
                    match_points=(points or {}).get(g, [0] * per_group)[r - 1],
                )
            )
        session.commit()
        result["groups"].append(group)
        result["standings"][group.id] = [p.id for p in members]
    return result

"""
Tests for entrant sourcing (CUSTOM / RANDOM / GROUP_RANK), size validation and seed order.
"""
import pytest
from sqlmodel import Session

from clubbracket.services import entrant_resolver
from clubbracket.services.entrant_resolver import (
    BracketOptions,
    EntrantSourceType,
    SeedOrder,
    resolve_entrants,
    validate_bracket_size,
)
from clubbracket.services.errors import BadRequestError
from tests.conftest import make_group_stage, make_participants, make_stage, make_tournament


@pytest.fixture
def knockout(session: Session):
    tournament = make_tournament(session)
    stage = make_stage(session, tournament.id)
    return tournament, stage


class TestValidateBracketSize:
    def test_accepts_power_of_two_at_least_entrants(self):
        validate_bracket_size(8, 5)
        validate_bracket_size(2, 2)

    def test_rejects_smaller_than_entrants(self):
        with pytest.raises(BadRequestError, match="smaller than"):
            validate_bracket_size(4, 5)

    def test_rejects_non_power_of_two(self):
        with pytest.raises(BadRequestError, match="power of two"):
            validate_bracket_size(6, 5)


class TestCustom:
    def test_pairs_flatten_in_order_with_seeds(self, session: Session, knockout):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 4)
        options = BracketOptions(
            source_type=EntrantSourceType.CUSTOM,
            pairs=[(p[2].id, p[0].id), (p[3].id, p[1].id)],
        )

        resolution = resolve_entrants(session, stage, options)

        assert resolution.size == 4
        assert resolution.rounds == 2
        assert [e.tournament_participant_id for e in resolution.entrants] == [p[2].id, p[0].id, p[3].id, p[1].id]
        assert [e.source_seed for e in resolution.entrants] == [1, 2, 3, 4]

    def test_size_defaults_to_next_power_of_two(self, session: Session, knockout):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 10)
        pairs = [(p[i].id, p[i + 1].id) for i in range(0, 10, 2)]

        resolution = resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.CUSTOM, pairs=pairs))

        assert resolution.size == 16

    def test_requires_pairs(self, session: Session, knockout):
        _, stage = knockout
        with pytest.raises(BadRequestError, match="pairs are required"):
            resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.CUSTOM))

    def test_rejects_half_pair(self, session: Session, knockout):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 2)
        options = BracketOptions(source_type=EntrantSourceType.CUSTOM, pairs=[(p[0].id, None)])
        with pytest.raises(BadRequestError, match="both side_a and side_b"):
            resolve_entrants(session, stage, options)

    def test_rejects_duplicates(self, session: Session, knockout):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 3)
        options = BracketOptions(
            source_type=EntrantSourceType.CUSTOM, pairs=[(p[0].id, p[1].id), (p[1].id, p[2].id)]
        )
        with pytest.raises(BadRequestError, match="Duplicate"):
            resolve_entrants(session, stage, options)

    def test_rejects_participant_from_other_tournament(self, session: Session, knockout):
        tournament, stage = knockout
        mine = make_participants(session, tournament.id, 1)
        other = make_tournament(session, name="Other")
        theirs = make_participants(session, other.id, 1)
        options = BracketOptions(source_type=EntrantSourceType.CUSTOM, pairs=[(mine[0].id, theirs[0].id)])
        with pytest.raises(BadRequestError, match="not in tournament"):
            resolve_entrants(session, stage, options)

    def test_rejects_explicit_size_too_small(self, session: Session, knockout):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 6)
        pairs = [(p[i].id, p[i + 1].id) for i in range(0, 6, 2)]
        options = BracketOptions(source_type=EntrantSourceType.CUSTOM, pairs=pairs, size=4)
        with pytest.raises(BadRequestError):
            resolve_entrants(session, stage, options)

    def test_reverse_order_keeps_original_seeds(self, session: Session, knockout):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 4)
        options = BracketOptions(
            source_type=EntrantSourceType.CUSTOM,
            pairs=[(p[0].id, p[1].id), (p[2].id, p[3].id)],
            seed_order=SeedOrder.REVERSE,
        )

        resolution = resolve_entrants(session, stage, options)

        assert [e.tournament_participant_id for e in resolution.entrants] == [p[3].id, p[2].id, p[1].id, p[0].id]
        assert [e.source_seed for e in resolution.entrants] == [4, 3, 2, 1]


class TestRandom:
    def test_uses_all_participants_shuffled(self, session: Session, knockout, monkeypatch):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 5)
        monkeypatch.setattr(entrant_resolver.random, "shuffle", lambda ids: ids.reverse())

        resolution = resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.RANDOM))

        assert resolution.size == 8
        assert [e.tournament_participant_id for e in resolution.entrants] == [x.id for x in reversed(p)]
        assert [e.source_seed for e in resolution.entrants] == [1, 2, 3, 4, 5]

    def test_single_participant_gets_two_bracket(self, session: Session, knockout):
        tournament, stage = knockout
        p = make_participants(session, tournament.id, 1)

        resolution = resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.RANDOM))

        assert resolution.size == 2
        assert resolution.rounds == 1
        assert [e.tournament_participant_id for e in resolution.entrants] == [p[0].id]

    def test_explicit_size_one_still_rejected(self, session: Session, knockout):
        tournament, stage = knockout
        make_participants(session, tournament.id, 1)
        with pytest.raises(BadRequestError, match="power of two"):
            resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.RANDOM, size=1))

    def test_no_participants(self, session: Session, knockout):
        _, stage = knockout
        with pytest.raises(BadRequestError, match="no participants"):
            resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.RANDOM))

    def test_size_below_participant_count(self, session: Session, knockout):
        tournament, stage = knockout
        make_participants(session, tournament.id, 5)
        with pytest.raises(BadRequestError, match="smaller than"):
            resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.RANDOM, size=4))


class TestGroupRank:
    def test_top_n_per_group_rank_major(self, session: Session, knockout):
        tournament, stage = knockout
        groups = make_group_stage(session, tournament.id, groups=4, per_group=3)
        options = BracketOptions(
            source_type=EntrantSourceType.GROUP_RANK,
            source_stage_id=groups["stage"].id,
            top_n_per_group=2,
        )

        resolution = resolve_entrants(session, stage, options)

        assert resolution.size == 8
        assert [e.source_rank for e in resolution.entrants] == [1, 1, 1, 1, 2, 2, 2, 2]
        group_ids = [g.id for g in groups["groups"]]
        assert [e.source_group_id for e in resolution.entrants] == group_ids + group_ids
        firsts = [groups["standings"][gid][0] for gid in group_ids]
        assert [e.tournament_participant_id for e in resolution.entrants[:4]] == firsts

    def test_wildcards_by_match_points(self, session: Session, knockout):
        tournament, stage = knockout
        groups = make_group_stage(
            session, tournament.id, groups=2, per_group=3, points={0: [9, 4, 1], 1: [9, 6, 1]}
        )
        group_a, group_b = groups["groups"]
        options = BracketOptions(
            source_type=EntrantSourceType.GROUP_RANK,
            source_stage_id=groups["stage"].id,
            top_n_per_group=1,
            wildcard_count=1,
        )

        resolution = resolve_entrants(session, stage, options)

        assert resolution.size == 4
        assert [e.tournament_participant_id for e in resolution.entrants] == [
            groups["standings"][group_a.id][0],
            groups["standings"][group_b.id][0],
            groups["standings"][group_b.id][1],
        ]

    def test_single_group_winner_gets_two_bracket(self, session: Session, knockout):
        tournament, stage = knockout
        groups = make_group_stage(session, tournament.id, groups=1, per_group=3)
        options = BracketOptions(
            source_type=EntrantSourceType.GROUP_RANK,
            source_stage_id=groups["stage"].id,
            top_n_per_group=1,
        )

        resolution = resolve_entrants(session, stage, options)

        assert resolution.size == 2
        assert len(resolution.entrants) == 1
        assert resolution.entrants[0].source_rank == 1

    def test_requires_source_stage_and_top_n(self, session: Session, knockout):
        _, stage = knockout
        with pytest.raises(BadRequestError, match="source_stage_id"):
            resolve_entrants(session, stage, BracketOptions(source_type=EntrantSourceType.GROUP_RANK, top_n_per_group=2))
        with pytest.raises(BadRequestError, match="top_n_per_group"):
            resolve_entrants(
                session, stage, BracketOptions(source_type=EntrantSourceType.GROUP_RANK, source_stage_id=stage.id)
            )

    def test_unranked_standings_rejected(self, session: Session, knockout):
        tournament, stage = knockout
        groups = make_group_stage(session, tournament.id, groups=2, per_group=2, ranked=False)
        options = BracketOptions(
            source_type=EntrantSourceType.GROUP_RANK,
            source_stage_id=groups["stage"].id,
            top_n_per_group=1,
        )
        with pytest.raises(BadRequestError, match="no ranked standings"):
            resolve_entrants(session, stage, options)

    def test_source_stage_without_groups(self, session: Session, knockout):
        tournament, stage = knockout
        empty_stage = make_stage(session, tournament.id, name="Empty")
        options = BracketOptions(
            source_type=EntrantSourceType.GROUP_RANK,
            source_stage_id=empty_stage.id,
            top_n_per_group=1,
        )
        with pytest.raises(BadRequestError, match="has no groups"):
            resolve_entrants(session, stage, options)

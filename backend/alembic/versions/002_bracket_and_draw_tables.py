"""Knockout matches, bracket slots and draw sessions

Revision ID: 002_bracket_draw
Revises: 001_initial
Create Date: 2026-02-02 00:10:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "002_bracket_draw"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("stage_id", sa.Integer(), nullable=False),
        sa.Column("round_no", sa.Integer(), nullable=False),
        sa.Column("match_no", sa.Integer(), nullable=False),
        sa.Column("best_of", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(), nullable=False, server_default="SCHEDULED"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["stage_id"], ["stage.id"]),
        sa.UniqueConstraint("stage_id", "round_no", "match_no", name="uq_match_stage_round_no"),
    )
    op.create_index("ix_match_stage_id", "match", ["stage_id"])

    op.create_table(
        "matchside",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("side", sa.String(), nullable=False),
        sa.Column("is_winner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.UniqueConstraint("match_id", "side", name="uq_match_side"),
    )
    op.create_index("ix_matchside_match_id", "matchside", ["match_id"])

    op.create_table(
        "matchsidemember",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_side_id", sa.Integer(), nullable=False),
        sa.Column("tournament_participant_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_side_id"], ["matchside.id"]),
        sa.ForeignKeyConstraint(["tournament_participant_id"], ["tournamentparticipant.id"]),
        sa.UniqueConstraint("match_side_id", "tournament_participant_id", name="uq_match_side_member"),
    )
    op.create_index("ix_matchsidemember_match_side_id", "matchsidemember", ["match_side_id"])
    op.create_index(
        "ix_matchsidemember_tournament_participant_id", "matchsidemember", ["tournament_participant_id"]
    )

    # One declaration per (match, side); columns populated depend on source_type
    op.create_table(
        "bracketslot",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("target_match_id", sa.Integer(), nullable=False),
        sa.Column("target_side", sa.String(), nullable=False),
        sa.Column("source_type", sa.String(), nullable=False),
        sa.Column("source_seed", sa.Integer(), nullable=True),
        sa.Column("source_group_id", sa.Integer(), nullable=True),
        sa.Column("source_rank", sa.Integer(), nullable=True),
        sa.Column("source_match_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["target_match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["source_group_id"], ["tournamentgroup.id"]),
        sa.ForeignKeyConstraint(["source_match_id"], ["match.id"]),
        sa.UniqueConstraint("target_match_id", "target_side", name="uq_bracket_slot_target"),
        sa.CheckConstraint(
            "(source_type = 'SEED' AND source_seed IS NOT NULL AND source_match_id IS NULL)"
            " OR (source_type = 'GROUP_RANK' AND source_group_id IS NOT NULL"
            " AND source_rank IS NOT NULL AND source_match_id IS NULL)"
            " OR (source_type = 'MATCH_WINNER' AND source_match_id IS NOT NULL"
            " AND source_seed IS NULL AND source_group_id IS NULL AND source_rank IS NULL)",
            name="ck_bracket_slot_source",
        ),
    )
    op.create_index("ix_bracketslot_target_match_id", "bracketslot", ["target_match_id"])
    op.create_index("ix_bracketslot_source_match_id", "bracketslot", ["source_match_id"])

    op.create_table(
        "drawsession",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("stage_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="DRAFT"),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("result", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("applied_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["stage_id"], ["stage.id"]),
    )
    op.create_index("ix_drawsession_tournament_id", "drawsession", ["tournament_id"])
    op.create_index("ix_drawsession_stage_id", "drawsession", ["stage_id"])

    op.create_table(
        "drawpairing",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("draw_session_id", sa.Integer(), nullable=False),
        sa.Column("side_a_id", sa.Integer(), nullable=False),
        sa.Column("side_b_id", sa.Integer(), nullable=True),
        sa.Column("pair_order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["draw_session_id"], ["drawsession.id"]),
    )
    op.create_index("ix_drawpairing_draw_session_id", "drawpairing", ["draw_session_id"])

    op.create_table(
        "drawgroupassignment",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("draw_session_id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("tournament_participant_id", sa.Integer(), nullable=False),
        sa.Column("seed_in_group", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["draw_session_id"], ["drawsession.id"]),
        sa.ForeignKeyConstraint(["group_id"], ["tournamentgroup.id"]),
        sa.ForeignKeyConstraint(["tournament_participant_id"], ["tournamentparticipant.id"]),
    )
    op.create_index("ix_drawgroupassignment_draw_session_id", "drawgroupassignment", ["draw_session_id"])


def downgrade() -> None:
    op.drop_table("drawgroupassignment")
    op.drop_table("drawpairing")
    op.drop_table("drawsession")
    op.drop_table("bracketslot")
    op.drop_table("matchsidemember")
    op.drop_table("matchside")
    op.drop_table("match")

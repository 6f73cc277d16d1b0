"""Initial migration: tournaments, users, stages, participants, groups

Revision ID: 001_initial
Revises:
Create Date: 2026-02-02 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("match_format", sa.String(), nullable=False, server_default="SINGLES"),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("nickname", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "stage",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("stage_order", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
    )
    op.create_index("ix_stage_tournament_id", "stage", ["tournament_id"])

    # Single player or doubles team
    op.create_table(
        "tournamentparticipant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
    )
    op.create_index("ix_tournamentparticipant_tournament_id", "tournamentparticipant", ["tournament_id"])
    op.create_index("ix_tournamentparticipant_seed", "tournamentparticipant", ["seed"])

    op.create_table(
        "tournamentparticipantmember",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_participant_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_participant_id"], ["tournamentparticipant.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.UniqueConstraint("tournament_participant_id", "user_id", name="uq_participant_member_user"),
    )
    op.create_index(
        "ix_tournamentparticipantmember_tournament_participant_id",
        "tournamentparticipantmember",
        ["tournament_participant_id"],
    )
    op.create_index("ix_tournamentparticipantmember_user_id", "tournamentparticipantmember", ["user_id"])

    op.create_table(
        "tournamentgroup",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("stage_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["stage_id"], ["stage.id"]),
    )
    op.create_index("ix_tournamentgroup_stage_id", "tournamentgroup", ["stage_id"])

    op.create_table(
        "groupmember",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("tournament_participant_id", sa.Integer(), nullable=False),
        sa.Column("seed_in_group", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["tournamentgroup.id"]),
        sa.ForeignKeyConstraint(["tournament_participant_id"], ["tournamentparticipant.id"]),
        sa.UniqueConstraint("group_id", "tournament_participant_id", name="uq_group_member"),
    )
    op.create_index("ix_groupmember_group_id", "groupmember", ["group_id"])
    op.create_index("ix_groupmember_tournament_participant_id", "groupmember", ["tournament_participant_id"])

    op.create_table(
        "groupstanding",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("tournament_participant_id", sa.Integer(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=True),
        sa.Column("match_points", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["tournamentgroup.id"]),
        sa.ForeignKeyConstraint(["tournament_participant_id"], ["tournamentparticipant.id"]),
        sa.UniqueConstraint("group_id", "tournament_participant_id", name="uq_group_standing"),
    )
    op.create_index("ix_groupstanding_group_id", "groupstanding", ["group_id"])
    op.create_index("ix_groupstanding_tournament_participant_id", "groupstanding", ["tournament_participant_id"])


def downgrade() -> None:
    op.drop_table("groupstanding")
    op.drop_table("groupmember")
    op.drop_table("tournamentgroup")
    op.drop_table("tournamentparticipantmember")
    op.drop_table("tournamentparticipant")
    op.drop_table("stage")
    op.drop_table("user")
    op.drop_table("tournament")

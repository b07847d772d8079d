"""create league tables

Revision ID: 5c1d2e7a9f30
Revises:
Create Date: 2026-10-19 10:12:41.318204
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1d2e7a9f30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create leagues, profiles, memberships, matchups, bets, result_logs"""
    op.create_table(
        "leagues",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("league_code", sa.String(12), nullable=False),
        sa.Column("admin_user_id", sa.String(), nullable=False, index=True),
        sa.Column("admin_email", sa.String()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), index=True),
        sa.Column("member_count", sa.Integer(), server_default="1"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
        sa.Column("is_paid", sa.Boolean(), server_default=sa.false()),
        sa.Column("paid_at", sa.DateTime()),
        sa.Column("payment_id", sa.String()),
        sa.Column("sheet_id", sa.String()),
        sa.Column("settings_updated_at", sa.DateTime()),
        sa.Column("settings_updated_by", sa.String()),
    )
    op.create_index("ix_leagues_league_code", "leagues", ["league_code"], unique=True)

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), index=True),
        sa.Column("display_name", sa.String()),
        sa.Column("username", sa.String(20), unique=True),
        sa.Column("default_league_id", sa.BigInteger(), sa.ForeignKey("leagues.id", ondelete="SET NULL")),
        sa.Column("preferences", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_user_profiles_user_id", "user_profiles", ["user_id"], unique=True)

    op.create_table(
        "user_league_memberships",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False, index=True),
        sa.Column("user_email", sa.String()),
        sa.Column("league_id", sa.BigInteger(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("role", sa.String(), server_default="user"),
        sa.Column("display_name", sa.String()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), index=True),
        sa.Column("is_premium", sa.Boolean(), server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("last_accessed_at", sa.DateTime(), server_default=sa.func.now(), index=True),
        sa.UniqueConstraint("user_id", "league_id", name="uq_membership_user_league"),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False, index=True),
        sa.Column("user_email", sa.String()),
        sa.Column("league_id", sa.BigInteger(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), index=True),
        sa.Column("role", sa.String(), server_default="user"),
        sa.Column("display_name", sa.String()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("is_premium", sa.Boolean(), server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "matchups",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("league_id", sa.BigInteger(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("matchup_key", sa.String(), nullable=False),
        sa.Column("week", sa.Integer(), nullable=False, index=True),
        sa.Column("team1", sa.String(), nullable=False),
        sa.Column("team1_record", sa.String(), server_default="0-0"),
        sa.Column("team2", sa.String(), nullable=False),
        sa.Column("team2_record", sa.String(), server_default="0-0"),
        sa.Column("winner", sa.String()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("league_id", "matchup_key", name="uq_matchup_key"),
        sa.Index("ix_matchups_league_week", "league_id", "week"),
    )

    op.create_table(
        "bets",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("league_id", sa.BigInteger(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.String(), nullable=False, index=True),
        sa.Column("user_name", sa.String(), nullable=False, index=True),
        sa.Column("matchup_key", sa.String(), nullable=False, index=True),
        sa.Column("selected_team", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
        sa.UniqueConstraint("league_id", "user_id", "matchup_key", name="uq_bet_user_matchup"),
    )

    op.create_table(
        "result_logs",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("league_id", sa.BigInteger(), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("matchup_key", sa.String(), nullable=False, index=True),
        sa.Column("winning_team", sa.String(), nullable=False),
        sa.Column("correct_picks", sa.Integer(), server_default="0"),
        sa.Column("incorrect_picks", sa.Integer(), server_default="0"),
        sa.Column("total_picks", sa.Integer(), server_default="0"),
        sa.Column("recorded_by", sa.String()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
    )


def downgrade() -> None:
    """Drop league tables"""
    op.drop_table("result_logs")
    op.drop_table("bets")
    op.drop_table("matchups")
    op.drop_table("user_roles")
    op.drop_table("user_league_memberships")
    op.drop_table("user_profiles")
    op.drop_index("ix_leagues_league_code", table_name="leagues")
    op.drop_table("leagues")

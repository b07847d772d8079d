from sqlalchemy import (
    Column, BigInteger, Integer, String, DateTime, ForeignKey,
    UniqueConstraint, Index, Boolean, JSON
)
from sqlalchemy.orm import relationship
from datetime import datetime
from .db import Base

# BIGINT ids in Postgres; SQLite only autoincrements INTEGER PRIMARY KEY
PK = BigInteger().with_variant(Integer, "sqlite")

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class League(Base):
    __tablename__ = "leagues"

    id = Column(PK, primary_key=True)
    name = Column(String, nullable=False)
    league_code = Column(String(12), unique=True, index=True, nullable=False)  # XXX-XXX-XXXX
    admin_user_id = Column(String, index=True, nullable=False)  # Firebase uid of the creator
    admin_email = Column(String)
    is_active = Column(Boolean, default=True, index=True)
    member_count = Column(Integer, default=1)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # One-time upgrade
    is_paid = Column(Boolean, default=False)
    paid_at = Column(DateTime, nullable=True)
    payment_id = Column(String, nullable=True)

    # Settings: the league's mirrored spreadsheet
    sheet_id = Column(String, nullable=True)
    settings_updated_at = Column(DateTime, nullable=True)
    settings_updated_by = Column(String, nullable=True)

    memberships = relationship("UserLeagueMembership", back_populates="league", cascade="all, delete-orphan")
    matchups = relationship("Matchup", back_populates="league", cascade="all, delete-orphan")

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "leagueCode": self.league_code,
            "adminUserId": self.admin_user_id,
            "adminEmail": self.admin_email,
            "isActive": bool(self.is_active),
            "memberCount": self.member_count or 0,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "isPaid": bool(self.is_paid),
            "paidAt": self.paid_at.isoformat() if self.paid_at else None,
            "paymentId": self.payment_id,
            "settings": {
                "googleSheetId": self.sheet_id,
                "updatedAt": self.settings_updated_at.isoformat() if self.settings_updated_at else None,
                "updatedBy": self.settings_updated_by,
            },
        }


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(PK, primary_key=True)
    user_id = Column(String, unique=True, index=True, nullable=False)  # Firebase uid
    email = Column(String, index=True)
    display_name = Column(String)
    username = Column(String(20), unique=True, nullable=True)  # stored lowercased
    default_league_id = Column(PK, ForeignKey("leagues.id", ondelete="SET NULL"), nullable=True)
    preferences = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def as_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "userEmail": self.email,
            "displayName": self.display_name,
            "username": self.username,
            "defaultLeagueId": self.default_league_id,
            "preferences": self.preferences or {},
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class UserLeagueMembership(Base):
    __tablename__ = "user_league_memberships"

    id = Column(PK, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    user_email = Column(String)
    league_id = Column(PK, ForeignKey("leagues.id", ondelete="CASCADE"), index=True, nullable=False)
    role = Column(String, default=ROLE_USER)  # admin | user
    display_name = Column(String)
    is_active = Column(Boolean, default=True, index=True)
    is_premium = Column(Boolean, default=False)
    joined_at = Column(DateTime, default=datetime.utcnow)
    last_accessed_at = Column(DateTime, default=datetime.utcnow, index=True)

    league = relationship("League", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("user_id", "league_id", name="uq_membership_user_league"),
    )

    def as_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "userEmail": self.user_email,
            "leagueId": self.league_id,
            "leagueName": self.league.name if self.league else "Unknown League",
            "leagueCode": self.league.league_code if self.league else "",
            "role": self.role,
            "displayName": self.display_name,
            "isActive": bool(self.is_active),
            "isPremium": bool(self.is_premium),
            "joinedAt": self.joined_at.isoformat() if self.joined_at else None,
            "lastAccessedAt": self.last_accessed_at.isoformat() if self.last_accessed_at else None,
        }


class UserRole(Base):
    """Pre-multi-league role row. Read only by the migration path."""
    __tablename__ = "user_roles"

    id = Column(PK, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    user_email = Column(String)
    league_id = Column(PK, ForeignKey("leagues.id", ondelete="CASCADE"), index=True)
    role = Column(String, default=ROLE_USER)
    display_name = Column(String)
    is_active = Column(Boolean, default=True)
    is_premium = Column(Boolean, default=False)
    joined_at = Column(DateTime, default=datetime.utcnow)


class Matchup(Base):
    __tablename__ = "matchups"

    id = Column(PK, primary_key=True)
    league_id = Column(PK, ForeignKey("leagues.id", ondelete="CASCADE"), index=True, nullable=False)
    matchup_key = Column(String, nullable=False)  # matchup-{week}-{row index}
    week = Column(Integer, index=True, nullable=False)
    team1 = Column(String, nullable=False)
    team1_record = Column(String, default="0-0")
    team2 = Column(String, nullable=False)
    team2_record = Column(String, default="0-0")
    winner = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    league = relationship("League", back_populates="matchups")

    __table_args__ = (
        UniqueConstraint("league_id", "matchup_key", name="uq_matchup_key"),
        Index("ix_matchups_league_week", "league_id", "week"),
    )

    def has_team(self, team: str) -> bool:
        t = (team or "").strip().lower()
        return t in (self.team1.lower(), self.team2.lower())

    def as_dict(self):
        return {
            "id": self.matchup_key,
            "week": self.week,
            "team1": self.team1,
            "team1_record": self.team1_record,
            "team2": self.team2,
            "team2_record": self.team2_record,
            "winner": self.winner,
        }


class Bet(Base):
    __tablename__ = "bets"

    id = Column(PK, primary_key=True)
    league_id = Column(PK, ForeignKey("leagues.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    user_name = Column(String, index=True, nullable=False)
    matchup_key = Column(String, index=True, nullable=False)
    selected_team = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("league_id", "user_id", "matchup_key", name="uq_bet_user_matchup"),
    )

    def as_dict(self):
        return {
            "id": self.id,
            "user_name": self.user_name,
            "matchup_id": self.matchup_key,
            "selected_team": self.selected_team,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ResultLog(Base):
    """Append-only audit of winner markings."""
    __tablename__ = "result_logs"

    id = Column(PK, primary_key=True)
    league_id = Column(PK, ForeignKey("leagues.id", ondelete="CASCADE"), index=True, nullable=False)
    matchup_key = Column(String, index=True, nullable=False)
    winning_team = Column(String, nullable=False)
    correct_picks = Column(Integer, default=0)
    incorrect_picks = Column(Integer, default=0)
    total_picks = Column(Integer, default=0)
    recorded_by = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

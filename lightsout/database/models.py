from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Float, Text, JSON,
    ForeignKey, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

class Constructor(Base):
    __tablename__ = 'constructors'

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    entity_class = Column(String(1), nullable=False)  # "A" or "B"
    color = Column(String(7))
    is_active = Column(Boolean, default=True)

    # Relationships
    drivers = relationship("Driver", back_populates="constructor")

    def __repr__(self):
        return f"<Constructor(id='{self.id}', class='{self.entity_class}')>"

class Driver(Base):
    __tablename__ = 'drivers'

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    constructor_id = Column(String(50), ForeignKey('constructors.id'), nullable=False)
    entity_class = Column(String(1), nullable=False)
    is_active = Column(Boolean, default=True)

    # Relationships
    constructor = relationship("Constructor", back_populates="drivers")

    def __repr__(self):
        return f"<Driver(id='{self.id}', constructor='{self.constructor_id}')>"

class SeasonEvent(Base):
    __tablename__ = 'season_events'

    id = Column(String(50), primary_key=True)
    season = Column(String(10), nullable=False, index=True)
    round = Column(Integer, nullable=False)
    name = Column(String(200), nullable=False)
    has_sprint = Column(Boolean, default=False)
    lock_at = Column(DateTime, nullable=True)  # UTC; picks become read-only afterwards

    __table_args__ = (UniqueConstraint('season', 'round'),)

    def __repr__(self):
        return f"<SeasonEvent(id='{self.id}', round={self.round})>"

class ScoringProfileConfig(Base):
    __tablename__ = 'scoring_profiles'

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    config = Column(JSON, nullable=False)  # PointsCatalog.to_dict()
    is_active = Column(Boolean, default=False)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

class LeagueMember(Base):
    __tablename__ = 'members'

    id = Column(String(64), primary_key=True)
    display_name = Column(String(100), nullable=False)
    is_admin = Column(Boolean, default=False)

    # Precomputed standings written by the league recompute (cache, not source of truth)
    total_points = Column(Integer, nullable=True)
    breakdown = Column(JSON, nullable=True)  # {"gp", "quali", "sprint", "fl"}
    rank = Column(Integer, nullable=True, index=True)
    previous_rank = Column(Integer, nullable=True)
    last_updated = Column(DateTime, nullable=True)

    registered_at = Column(DateTime, default=func.now())

    # Relationships
    picks = relationship("EventPicks", back_populates="member", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<LeagueMember(id='{self.id}', name='{self.display_name}', rank={self.rank})>"

class EventPicks(Base):
    __tablename__ = 'event_picks'

    id = Column(Integer, primary_key=True)
    member_id = Column(String(64), ForeignKey('members.id'), nullable=False, index=True)
    event_id = Column(String(50), nullable=False, index=True)  # May reference retired events

    a_teams = Column(JSON, nullable=False)
    b_team = Column(String(50), nullable=True)
    a_drivers = Column(JSON, nullable=False)
    b_drivers = Column(JSON, nullable=False)
    fastest_lap = Column(String(50), nullable=True)

    penalty = Column(Float, nullable=True)
    penalty_reason = Column(Text, nullable=True)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    member = relationship("LeagueMember", back_populates="picks")

    __table_args__ = (
        UniqueConstraint('member_id', 'event_id'),
        CheckConstraint('penalty IS NULL OR (penalty >= 0 AND penalty <= 1)', name='ck_penalty_range'),
    )

class EventResult(Base):
    __tablename__ = 'event_results'

    event_id = Column(String(50), primary_key=True)

    grand_prix_finish = Column(JSON, nullable=False)
    gp_qualifying = Column(JSON, nullable=False)
    sprint_finish = Column(JSON, nullable=True)
    sprint_qualifying = Column(JSON, nullable=True)
    fastest_lap = Column(String(50), nullable=True)

    # Snapshots taken at save time
    driver_teams = Column(JSON, nullable=True)
    scoring_snapshot = Column(JSON, nullable=True)

    saved_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<EventResult(event_id='{self.event_id}')>"

class RefreshPolicyRecord(Base):
    __tablename__ = 'refresh_policies'

    device_id = Column(String(100), primary_key=True)
    count = Column(Integer, default=0)
    last_refresh_time = Column(Float, default=0.0)
    window_start_time = Column(Float, default=0.0)
    locked_until_time = Column(Float, default=0.0)

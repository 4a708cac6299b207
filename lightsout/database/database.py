from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import select, func
from contextlib import asynccontextmanager

from lightsout.config import Config
from lightsout.constants import RosterConstants, ScoringConstants, SeasonConstants
from lightsout.data_models.scoring import PointsCatalog
from lightsout.database.models import (
    Base, Constructor, Driver, SeasonEvent, ScoringProfileConfig
)
from lightsout.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.DATABASE_URL
        self.engine = None
        self.async_session = None

    async def initialize(self, seed: bool = True):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        # Convert sqlite URL to async if needed
        database_url = self.database_url
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

        if seed:
            await self.initialize_default_data()

    @property
    def session_factory(self):
        """Session factory handed to the services"""
        return self.async_session

    async def initialize_default_data(self):
        """Seed the roster, the season calendar and the default scoring profile"""
        async with self.get_session() as session:
            result = await session.execute(select(func.count(Constructor.id)))
            if result.scalar() == 0:
                self.logger.info("Initializing default roster...")
                for constructor_id, name, entity_class, color in RosterConstants.CONSTRUCTORS:
                    session.add(Constructor(id=constructor_id, name=name, entity_class=entity_class, color=color))
                await session.flush()
                for driver_id, name, constructor_id, entity_class in RosterConstants.DRIVERS:
                    session.add(Driver(id=driver_id, name=name, constructor_id=constructor_id, entity_class=entity_class))
                self.logger.info(
                    f"Added {len(RosterConstants.CONSTRUCTORS)} constructors and {len(RosterConstants.DRIVERS)} drivers"
                )

            result = await session.execute(
                select(func.count(SeasonEvent.id)).where(SeasonEvent.season == Config.CURRENT_SEASON)
            )
            if result.scalar() == 0 and Config.CURRENT_SEASON == SeasonConstants.SEASON:
                self.logger.info(f"Initializing {SeasonConstants.SEASON} season calendar...")
                for event_id, round_number, name, has_sprint in SeasonConstants.EVENTS:
                    session.add(SeasonEvent(
                        id=event_id, season=SeasonConstants.SEASON, round=round_number,
                        name=name, has_sprint=has_sprint
                    ))
                self.logger.info(f"Added {len(SeasonConstants.EVENTS)} season events")

            result = await session.execute(select(func.count(ScoringProfileConfig.id)))
            if result.scalar() == 0:
                session.add(ScoringProfileConfig(
                    id=ScoringConstants.DEFAULT_PROFILE_ID,
                    name=ScoringConstants.DEFAULT_PROFILE_NAME,
                    config=PointsCatalog.default().to_dict(),
                    is_active=True
                ))
                self.logger.info("Added default scoring profile")

            await session.commit()

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def _async_url(database_url: str) -> str:
    # Hosted Postgres hands out plain driver-less URLs
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(_async_url(database_url), echo=echo, future=True)


def build_sessionmaker(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    # Make sure the models are registered on Base.metadata
    from ai_pulse.models import item_model, vote_model  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

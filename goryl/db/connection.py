from sqlalchemy.ext.asyncio import create_async_engine,async_sessionmaker,AsyncSession
from goryl.config.settings import config_settings
from goryl.db.utils import _normalize_db_url, engine_kwargs

DATABASE_URL=_normalize_db_url(config_settings.DATABASE_URL)


def make_engine(url: str = DATABASE_URL):
    url = _normalize_db_url(url)
    return create_async_engine(url,echo=False,**engine_kwargs(url))


def make_session_maker(engine):
    return async_sessionmaker(bind=engine,class_=AsyncSession,expire_on_commit=False)


async_engine=make_engine()

async_session=make_session_maker(async_engine)

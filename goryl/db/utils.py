from sqlalchemy import update


def _normalize_db_url(url: str | None) -> str | None:
    # hosted postgres hands out "postgres://..." , the async engine needs "postgresql+asyncpg://..."
    if not url:
        return None
    if url.startswith("postgres://",):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # writers queue on the database lock for up to `timeout` seconds
        return {"connect_args": {"check_same_thread": False, "timeout": 15}}
    return {"pool_pre_ping": True}


async def claim_status(session, model, row_id: int, from_status: str, to_status: str) -> bool:
    """Compare-and-set on `model.status`. False when another transaction moved the row first."""
    stmt = (update(model)
            .where(model.id == row_id, model.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session=False))
    res = await session.execute(stmt)
    return res.rowcount == 1

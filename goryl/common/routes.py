from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.logging_setup import get_logger
from goryl.db.dependencies import get_session

logger = get_logger("goryl.common")

home_router=APIRouter()


@home_router.get("/health")
async def health_check(session:AsyncSession=Depends(get_session)):
    stmt=select(1)

    try:
        await session.execute(stmt)
    except SQLAlchemyError as e:
        logger.error("health.db_unreachable", extra={"error": str(e)})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Database connection error")

    return {"status": "healthy"}

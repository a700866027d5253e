from typing import Any, Dict, Optional
from sqlalchemy import select
from goryl.common.utils import iso
from goryl.schema.full_schema import AuditLog


async def write_audit(session, actor_user_id: Optional[int], actor_role: str, action: str,
                      target_type: str, target_id: str, details: Optional[Dict[str, Any]] = None):
    entry = AuditLog(actor_user_id=actor_user_id, actor_role=actor_role, action=action,
                     target_type=target_type, target_id=target_id, details=details)
    session.add(entry)
    return entry


async def latest_audit(session, limit: int = 100):
    stmt = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)
    rows = (await session.execute(stmt)).scalars().all()
    return [
        {
            "id": r.id,
            "actor_role": r.actor_role,
            "action": r.action,
            "target_type": r.target_type,
            "target_id": r.target_id,
            "details": r.details or {},
            "created_at": iso(r.created_at),
        }
        for r in rows
    ]

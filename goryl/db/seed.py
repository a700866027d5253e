from sqlalchemy import select
from sqlalchemy.ext.asyncio import  AsyncSession

from goryl.api.default_roles import DEFAULT_ROLES, ROLE_PERMISSIONS
from goryl.schema.full_schema import Permission, Role, RolePermission
from goryl.db import logger


async def seed_roles(session: AsyncSession):
    for r in DEFAULT_ROLES:
        q = await session.execute(select(Role).where(Role.name == r["name"]))
        role = q.scalar_one_or_none()
        if not role:
            role = Role(name=r["name"], description=r["description"])
            session.add(role)
    await session.flush()


async def seed_permissions(session: AsyncSession):
    roles = {r.name: r.id for r in (await session.execute(select(Role))).scalars().all()}
    perms = {p.name: p for p in (await session.execute(select(Permission))).scalars().all()}

    for perm_name in sorted({p for names in ROLE_PERMISSIONS.values() for p in names}):
        if perm_name not in perms:
            perm = Permission(name=perm_name)
            session.add(perm)
            perms[perm_name] = perm
    await session.flush()

    existing = set((await session.execute(select(RolePermission.role_id, RolePermission.permission_id))).all())
    for role_name, perm_names in ROLE_PERMISSIONS.items():
        for perm_name in perm_names:
            pair = (roles[role_name], perms[perm_name].id)
            if pair not in existing:
                session.add(RolePermission(role_id=pair[0], permission_id=pair[1]))
                existing.add(pair)


async def seed_defaults(session_maker):
    async with session_maker() as session:
        await seed_roles(session)
        await seed_permissions(session)
        await session.commit()
    logger.info("db.seed.done")

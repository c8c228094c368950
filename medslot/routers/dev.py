# medslot/routers/dev.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.config import settings
from medslot.db.sql import get_session
from medslot.modules.users.models import User as UserModel

# Admins cannot self-register; this is how the first one is made locally.
router = APIRouter(prefix="/_dev", tags=["dev"])

@router.post("/promote-admin")
async def promote_admin(email: str, db: AsyncSession = Depends(get_session)):
    # DEBUG only
    if not settings.DEBUG:
        raise HTTPException(status_code=404, detail="not_found")

    email_lower = email.strip().lower()

    row = await db.execute(select(UserModel.id).where(UserModel.email == email_lower))
    if row.first() is None:
        raise HTTPException(status_code=404, detail="user_not_found")

    await db.execute(
        update(UserModel)
        .where(UserModel.email == email_lower)
        .values(role="admin")
    )

    return {"email": email_lower, "role": "admin"}

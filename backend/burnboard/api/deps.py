"""FastAPI dependency injection — storage access and request clock."""
from datetime import datetime

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from burnboard.db import get_db
from burnboard.services.storage import Storage


def get_storage(db: AsyncSession = Depends(get_db)) -> Storage:
    return Storage(db)


def get_now() -> datetime:
    """
    The single point where "now" enters a request.

    Services take it as an explicit ``as_of`` argument; tests override this
    dependency to pin the clock.
    """
    return datetime.now()

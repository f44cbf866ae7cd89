from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_snapshots.database import get_db
from portfolio_snapshots.schemas.settings import UserPreferences
from portfolio_snapshots.services.preferences import PreferencesService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=UserPreferences)
async def get_preferences(db: AsyncSession = Depends(get_db)):
    """Get user preferences, with defaults for anything not stored."""
    return await PreferencesService(db).load()


@router.put("", response_model=UserPreferences)
async def save_preferences(preferences: UserPreferences, db: AsyncSession = Depends(get_db)):
    """Save every preference field."""
    return await PreferencesService(db).save(preferences)

"""
Settings router - Runtime configuration from database
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from settings_helper import get_public_settings

router = APIRouter()


@router.get("/public")
async def public_settings(db: Session = Depends(get_db)):
    """Settings flagged is_public (app name, maintenance mode...). No auth."""
    return {"settings": get_public_settings(db)}

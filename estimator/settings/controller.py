# estimator/settings/controller.py

from typing import Any

from fastapi import APIRouter, Body

from ..database.core import DbSession
from ..schemas.rules import PartType
from .service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/material_grades/{part_type}")
def get_material_grades_for_part_type(part_type: PartType, db: DbSession):
    """Material grades offered for one part type"""
    grades = SettingsService.get_material_grades(db, part_type)
    return [grade.model_dump(mode="json", by_alias=True) for grade in grades]


@router.get("/{key}")
def get_settings_table(key: str, db: DbSession):
    """Get one rule table with its version"""
    return SettingsService.get_table(db, key).to_dict()


@router.put("/{key}")
def save_settings_table(key: str, db: DbSession, value: Any = Body(...)):
    """Replace a whole rule table"""
    return SettingsService.save_table(db, key, value).to_dict()

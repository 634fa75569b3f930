"""
Menu Schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
import datetime as dt

from hostel.models.menu import MEALS


class MenuUpsert(BaseModel):
    date: dt.date
    meals: Dict[str, List[str]]

    @field_validator("meals")
    @classmethod
    def check_meals(cls, value):
        unknown = set(value) - set(MEALS)
        if unknown:
            raise ValueError(f"Unknown meals: {', '.join(sorted(unknown))}")
        return {meal: [item.strip() for item in value.get(meal, []) if item.strip()] for meal in MEALS}


class MenuResponse(BaseModel):
    id: str
    date: dt.date
    meals: Dict[str, List[str]]
    updated_at: dt.datetime


class RateMealRequest(BaseModel):
    date: dt.date
    meal: str = Field(..., pattern="^(breakfast|lunch|dinner)$")
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class MealStats(BaseModel):
    average: float
    count: int


class RatingStatsResponse(BaseModel):
    date: dt.date
    meals: Dict[str, MealStats]
    overall: MealStats


class NotifyRequest(BaseModel):
    meal: str = Field(..., pattern="^(breakfast|lunch|dinner)$")
    date: Optional[dt.date] = None
    message: Optional[str] = Field(None, max_length=500)


class NotifyResponse(BaseModel):
    meal: str
    notified: int

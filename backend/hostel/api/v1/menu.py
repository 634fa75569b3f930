"""
Mess Menu API Routes
"""
from datetime import date
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from hostel.config.permissions import AccessLevel, Permission
from hostel.database import get_db
from hostel.dependencies import CurrentUser, get_current_student, get_current_user, require_section
from hostel.models.menu import MEALS, MealRating, Menu, Notification
from hostel.models.student import Student
from hostel.schemas.menu import (
    MealStats,
    MenuResponse,
    MenuUpsert,
    NotifyRequest,
    NotifyResponse,
    RateMealRequest,
    RatingStatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _menu_response(menu: Menu) -> MenuResponse:
    meals = menu.meals or {}
    return MenuResponse(
        id=str(menu.id),
        date=menu.date,
        meals={meal: list(meals.get(meal, [])) for meal in MEALS},
        updated_at=menu.updated_at,
    )


def _menu_for(db: Session, menu_date: date) -> Menu:
    menu = db.query(Menu).filter(Menu.date == menu_date).first()
    if not menu:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No menu for this date")
    return menu


@router.get("/today", response_model=MenuResponse)
async def get_today_menu(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _menu_response(_menu_for(db, date.today()))


@router.get("/date", response_model=MenuResponse)
async def get_menu_by_date(
    menu_date: date = Query(..., alias="date"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _menu_response(_menu_for(db, menu_date))


@router.post("/date", response_model=MenuResponse)
async def upsert_menu(
    data: MenuUpsert,
    current_user: CurrentUser = Depends(require_section(Permission.MENU_MANAGEMENT, AccessLevel.FULL)),
    db: Session = Depends(get_db),
):
    """Create or replace the menu for a date"""
    menu = db.query(Menu).filter(Menu.date == data.date).first()
    if menu is None:
        menu = Menu(date=data.date)
        db.add(menu)

    menu.meals = data.meals
    menu.updated_by = current_user.id
    db.commit()
    db.refresh(menu)
    return _menu_response(menu)


@router.post("/rate")
async def rate_meal(
    data: RateMealRequest,
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """Rate a meal; rating again replaces the earlier rating"""
    menu = _menu_for(db, data.date)

    rating = db.query(MealRating).filter(
        MealRating.menu_id == menu.id,
        MealRating.student_id == current_user.id,
        MealRating.meal == data.meal,
    ).first()

    if rating is None:
        rating = MealRating(menu_id=menu.id, student_id=current_user.id, meal=data.meal)
        db.add(rating)

    rating.rating = data.rating
    rating.comment = data.comment
    db.commit()
    return {"message": "Rating saved", "meal": data.meal, "rating": data.rating}


@router.get("/ratings/stats", response_model=RatingStatsResponse)
async def rating_stats(
    menu_date: date = Query(..., alias="date"),
    current_user: CurrentUser = Depends(require_section(Permission.MENU_MANAGEMENT)),
    db: Session = Depends(get_db),
):
    """Average rating and rating count per meal for a date"""
    menu = _menu_for(db, menu_date)

    rows = (
        db.query(MealRating.meal, func.avg(MealRating.rating), func.count(MealRating.id))
        .filter(MealRating.menu_id == menu.id)
        .group_by(MealRating.meal)
        .all()
    )
    by_meal = {meal: (float(avg or 0), count) for meal, avg, count in rows}

    meals = {
        meal: MealStats(average=round(by_meal.get(meal, (0.0, 0))[0], 2), count=by_meal.get(meal, (0.0, 0))[1])
        for meal in MEALS
    }
    total = sum(s.count for s in meals.values())
    overall = sum(s.average * s.count for s in meals.values()) / total if total else 0.0
    return RatingStatsResponse(date=menu.date, meals=meals, overall=MealStats(average=round(overall, 2), count=total))


@router.post("/notify", response_model=NotifyResponse)
async def notify_meal(
    data: NotifyRequest,
    current_user: CurrentUser = Depends(require_section(Permission.MENU_MANAGEMENT, AccessLevel.FULL)),
    db: Session = Depends(get_db),
):
    """Notify every active student that a meal is being served"""
    menu = _menu_for(db, data.date or date.today())
    items = (menu.meals or {}).get(data.meal, [])

    message = data.message or (
        f"Today's {data.meal}: {', '.join(items)}" if items else f"{data.meal.capitalize()} is being served"
    )
    title = f"{data.meal.capitalize()} is ready"

    student_ids = [sid for (sid,) in db.query(Student.id).filter(Student.is_active.is_(True)).all()]
    db.add_all(
        Notification(student_id=sid, title=title, message=message, kind="meal")
        for sid in student_ids
    )
    db.commit()

    logger.info("Sent %s notification to %s students", data.meal, len(student_ids))
    return NotifyResponse(meal=data.meal, notified=len(student_ids))

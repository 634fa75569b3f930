"""
Course and Branch API Routes
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from hostel.config.roles import Role
from hostel.database import get_db
from hostel.dependencies import CurrentUser, require_role
from hostel.models.course import Branch, Course
from hostel.schemas.course import BranchCreate, BranchResponse, CourseCreate, CourseResponse

router = APIRouter()


@router.get("", response_model=List[CourseResponse])
async def list_courses(db: Session = Depends(get_db)):
    """All courses with their branches (public, used by registration forms)"""
    return db.query(Course).order_by(Course.name).all()


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    current_user: CurrentUser = Depends(require_role(Role.SUPER_ADMIN)),
    db: Session = Depends(get_db),
):
    """Create a course"""
    if db.query(Course).filter((Course.code == data.code) | (Course.name == data.name)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course already exists")

    course = Course(name=data.name, code=data.code)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@router.post("/{course_id}/branches", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(
    course_id: UUID,
    data: BranchCreate,
    current_user: CurrentUser = Depends(require_role(Role.SUPER_ADMIN)),
    db: Session = Depends(get_db),
):
    """Add a branch to a course"""
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    if db.query(Branch).filter(Branch.course_id == course.id, Branch.code == data.code).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Branch code already exists for this course")

    branch = Branch(course_id=course.id, name=data.name, code=data.code)
    db.add(branch)
    db.commit()
    db.refresh(branch)
    return branch

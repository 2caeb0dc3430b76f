"""World Athletics scoring table and saved-points endpoints"""
import json
import time
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import Numeric, cast, func, insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from athletics_api.api.deps import require_auth
from athletics_api.api.users import ensure_owner
from athletics_api.config import settings
from athletics_api.database import get_db
from athletics_api.models.points import Points, UserPoints
from athletics_api.schemas.points import Category, Gender, PointsLookupResponse, PointsRecord, PointsResponse
from athletics_api.utils.logger import logger
from athletics_api.utils.sessions import AuthContext

router = APIRouter(prefix="/api/world_aths", tags=["points"])
user_points_router = APIRouter(prefix="/api/user/user_points", tags=["points"])

_records_adapter = TypeAdapter(List[PointsRecord])


# ---------------------------------------------------------------------------
# Scoring table
# ---------------------------------------------------------------------------

def load_points_file(path: Path) -> List[PointsRecord]:
    """Parse the scoring table JSON file (a list of PascalCase records)"""
    with path.open("r", encoding="utf-8") as fh:
        return _records_adapter.validate_python(json.load(fh))


# Raised by load_points_file for a missing, unparsable or invalid file
POINTS_FILE_ERRORS = (OSError, json.JSONDecodeError, ValidationError)


def import_points_table(db: Session) -> Optional[int]:
    """
    Insert every record of ``POINTS_DATA_FILE`` into the points table

    Returns the number of rows added, or None when the table already holds
    ``POINTS_IMPORT_LIMIT`` rows and nothing was read.

    Raises:
        One of POINTS_FILE_ERRORS when the file cannot be loaded.
    """
    count = db.query(func.count(Points.id)).scalar()
    if count >= settings.POINTS_IMPORT_LIMIT:
        return None

    records = load_points_file(Path(settings.POINTS_DATA_FILE))
    if records:
        db.execute(insert(Points), [record.model_dump() for record in records])
    db.commit()

    logger.info(f"Imported {len(records)} scoring rows", extra={"action": "import_points"})
    return len(records)


@router.get("/read")
def import_points(db: Session = Depends(get_db)):
    """
    Bulk-load the scoring table from ``POINTS_DATA_FILE``

    Refuses to run once the table already holds ``POINTS_IMPORT_LIMIT`` rows.
    """
    path = Path(settings.POINTS_DATA_FILE)
    start = time.perf_counter()
    try:
        imported = import_points_table(db)
    except POINTS_FILE_ERRORS as exc:
        logger.warning(
            f"Could not read points file {path}: {exc}",
            extra={"action": "import_points"}
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Could not read points file {path.name}"
        )

    if imported is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Points already exist"
        )

    elapsed = time.perf_counter() - start
    return {"status": "Values added", "count": imported, "time": round(elapsed, 3)}


@router.get("/points/{category}/{gender}/{event}", response_model=PointsLookupResponse)
def get_points(
    category: Category,
    gender: Gender,
    event: str,
    mark: Optional[float] = Query(None, description="Performance to score"),
    points: Optional[int] = Query(None, description="Score to find the mark for"),
    db: Session = Depends(get_db)
):
    """
    Look up a scoring row by exactly one of ``mark`` or ``points``

    Category, gender and event match case-insensitively; marks match to two
    decimal places.
    """
    if (mark is None) == (points is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide exactly one of 'mark' or 'points'"
        )

    query = db.query(Points).filter(
        func.lower(Points.category) == category.value.lower(),
        func.lower(Points.gender) == gender.value.lower(),
        func.lower(Points.event) == event.lower()
    )
    if mark is not None:
        query = query.filter(func.round(cast(Points.mark, Numeric), 2) == round(mark, 2))
    else:
        query = query.filter(Points.points == points)

    row = query.order_by(Points.id).first()
    return PointsLookupResponse(points=PointsResponse.model_validate(row) if row else None)


# ---------------------------------------------------------------------------
# Saved points
# ---------------------------------------------------------------------------

@user_points_router.get("/{user_id}")
def get_user_points(
    user_id: int,
    db: Session = Depends(get_db),
    _: AuthContext = Depends(require_auth)
):
    """List the scoring rows saved by a user"""
    if user_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )

    rows = (
        db.query(Points)
        .join(UserPoints, UserPoints.point_id == Points.id)
        .filter(UserPoints.user_id == user_id)
        .order_by(Points.id)
        .all()
    )
    return {"user_points": [PointsResponse.model_validate(row).model_dump() for row in rows]}


@user_points_router.post("/{user_id}/{points_id}", status_code=status.HTTP_201_CREATED)
def add_user_points(
    user_id: int,
    points_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_auth)
):
    """Save a scoring row for the authenticated user"""
    ensure_owner(ctx, user_id)

    if db.get(Points, points_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Points {points_id} not found"
        )

    db.add(UserPoints(user_id=user_id, point_id=points_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Points already saved"
        )

    logger.info(f"Saved points {points_id}", extra={"user_id": user_id, "action": "add_user_points"})
    return {"user_points": "success"}


@user_points_router.delete("/{user_id}/{points_id}")
def delete_user_points(
    user_id: int,
    points_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_auth)
):
    """Remove a saved scoring row for the authenticated user"""
    ensure_owner(ctx, user_id)

    deleted = db.query(UserPoints).filter(
        UserPoints.user_id == user_id,
        UserPoints.point_id == points_id
    ).delete()
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Points {points_id} not saved for user {user_id}"
        )
    db.commit()

    logger.info(f"Removed points {points_id}", extra={"user_id": user_id, "action": "delete_user_points"})
    return {"user_points": "success"}

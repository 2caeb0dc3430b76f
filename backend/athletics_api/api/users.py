"""User registration and profile endpoints"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from athletics_api.api.deps import require_auth
from athletics_api.database import get_db
from athletics_api.models.user import User
from athletics_api.schemas.user import UserCreate, UserResponse, UserUpdate
from athletics_api.utils.auth import hash_password
from athletics_api.utils.logger import logger
from athletics_api.utils.sessions import AuthContext

router = APIRouter(prefix="/api/user", tags=["users"])
registration_router = APIRouter(prefix="/api/auth", tags=["authentication"])


def ensure_owner(ctx: AuthContext, user_id: int) -> None:
    """Reject requests acting on another user's resources"""
    if ctx.user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User ID does not match the authenticated user"
        )


def _email_taken(db: Session, email: str, exclude_id: int = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@registration_router.post("/user", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new user

    The password is stored as an argon2 hash and never returned.
    """
    if _email_taken(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists"
        )

    user = User(
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        email=user_data.email,
        phone=user_data.phone,
        active=True,
        password=hash_password(user_data.password)
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Created user: {user.id}", extra={"user_id": user.id, "action": "create_user"})
    return user


@router.get("/")
def get_users(_: AuthContext = Depends(require_auth)):
    """Authenticated ping"""
    return {"status": "ok"}


@router.get("/me")
def get_me(ctx: AuthContext = Depends(require_auth)):
    """
    Return the authenticated user's details
    """
    return {
        "status": "success",
        "data": {"user": UserResponse.model_validate(ctx.user).model_dump()}
    }


@router.put("/{user_id}")
def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_auth)
):
    """
    Update the authenticated user's own details
    """
    ensure_owner(ctx, user_id)

    if _email_taken(db, user_data.email, exclude_id=user_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use"
        )

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )

    user.first_name = user_data.first_name
    user.last_name = user_data.last_name
    user.email = user_data.email
    user.phone = user_data.phone
    db.commit()
    db.refresh(user)

    logger.info(f"Updated user: {user_id}", extra={"user_id": user_id, "action": "update_user"})
    return {
        "status": "success",
        "data": {"user": UserResponse.model_validate(user).model_dump()}
    }

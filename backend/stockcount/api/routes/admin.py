"""Admin-only user management and catalog copy. Every route requires the ADMIN role (403 otherwise)."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockcount.api.deps import get_db, require_admin
from stockcount.core.audit import AuditLog
from stockcount.core.exceptions import ApiError
from stockcount.core.security import get_password_hash
from stockcount.models.item import Item
from stockcount.models.user import User
from stockcount.schemas.inventory import MessageResponse
from stockcount.schemas.item import ItemResponse, TransferItemsRequest, TransferItemsResponse
from stockcount.schemas.user import AdminUserCreate, RoleUpdate, UserResponse
from stockcount.services import item_service

router = APIRouter()


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise ApiError.not_found("User")
    return user


@router.get("/users", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(data: AdminUserCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ApiError.conflict("User with this email already exists")

    user = User(
        name=data.name,
        email=email,
        password_hash=get_password_hash(data.password),
        role=data.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    AuditLog.log_action("create", "user", user.id, admin, changes={"email": email, "role": data.role.value})
    return user


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user_role(
    user_id: int,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if user_id == admin.id:
        raise ApiError.bad_request("Admins cannot change their own role.")

    user = _get_user(db, user_id)
    old_role = user.role
    user.role = data.role
    db.commit()
    db.refresh(user)
    AuditLog.log_permission_change(user.id, admin.id, old_role.value, data.role.value)
    return user


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Delete a user together with their items, inventories and linked accounts."""
    if user_id == admin.id:
        raise ApiError.bad_request("Admins cannot delete themselves.")

    user = _get_user(db, user_id)
    email = user.email
    db.delete(user)
    db.commit()
    AuditLog.log_action("delete", "user", user_id, admin, changes={"email": email})
    return MessageResponse(message="User deleted successfully")


@router.get("/users/{user_id}/items", response_model=List[ItemResponse])
def list_user_items(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    _get_user(db, user_id)
    return db.query(Item).filter(Item.user_id == user_id).order_by(Item.name).all()


@router.post("/transfer-items", response_model=TransferItemsResponse)
def transfer_items(data: TransferItemsRequest, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """
    Copy every master item of the source user to the target user.

    Non-destructive: the source keeps its items. Items whose UPC the target
    already owns are skipped.
    """
    if data.source_user_id == data.target_user_id:
        raise ApiError.bad_request("Source and target users cannot be the same.")
    _get_user(db, data.source_user_id)
    _get_user(db, data.target_user_id)

    copied, skipped, total = item_service.copy_items(db, data.source_user_id, data.target_user_id)
    if total == 0:
        return TransferItemsResponse(message="The source user has no master items to copy.", count=0)

    message = f"Successfully copied {copied} of {total} items."
    if skipped:
        message += f" {skipped} items were skipped because the target user already has their UPC codes."

    AuditLog.log_action(
        "copy",
        "item",
        None,
        admin,
        changes={"source_user_id": data.source_user_id, "target_user_id": data.target_user_id, "count": copied},
    )
    return TransferItemsResponse(message=message, count=copied, skipped=skipped)

"""Master item catalog for the current user. Admins may also read, edit and delete any user's items."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from stockcount.api.deps import get_current_user, get_db
from stockcount.core.audit import AuditLog
from stockcount.core.exceptions import ApiError, ConflictError
from stockcount.core.permissions import get_accessible_item
from stockcount.models.user import User
from stockcount.schemas.inventory import MessageResponse
from stockcount.schemas.item import ItemCreate, ItemResponse, ItemUpdate
from stockcount.services import item_service

router = APIRouter()


@router.get("", response_model=List[ItemResponse])
def list_items(
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest first. search matches name, brand or UPC."""
    return item_service.list_items(db, current_user.id, search=search, skip=skip, limit=limit)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    data: ItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        item = item_service.create_item(db, current_user.id, data)
    except ConflictError as e:
        raise ApiError.conflict(str(e))
    except ValueError as e:
        raise ApiError.bad_request(str(e))

    AuditLog.log_action("create", "item", item.id, current_user, changes={"name": item.name})
    return item


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(item_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_accessible_item(db, item_id, current_user)


@router.patch("/{item_id}", response_model=ItemResponse)
def update_item(
    item_id: int,
    data: ItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = get_accessible_item(db, item_id, current_user, action="write")
    try:
        item = item_service.update_item(db, item, data)
    except ConflictError as e:
        raise ApiError.conflict(str(e))
    except ValueError as e:
        raise ApiError.bad_request(str(e))

    AuditLog.log_action("update", "item", item.id, current_user, changes=data.model_dump(exclude_unset=True))
    return item


@router.delete("/{item_id}", response_model=MessageResponse)
def delete_item(item_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    item = get_accessible_item(db, item_id, current_user, action="delete")
    try:
        item_service.delete_item(db, item)
    except ConflictError as e:
        raise ApiError.conflict(str(e))

    AuditLog.log_action("delete", "item", item_id, current_user)
    return MessageResponse(message="Item deleted successfully.")

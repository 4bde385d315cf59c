from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import parent_service
from ...services.errors import ServiceError

router = APIRouter(prefix="/parents", tags=["parents"])


@router.get("/me", response_model=schemas.Parent)
def get_profile(parent: models.Parent = Depends(deps.get_current_parent)):
    return parent


@router.patch("/me", response_model=schemas.Parent)
def update_profile(
    payload: schemas.ParentUpdate,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(parent, key, value)
    db.commit()
    db.refresh(parent)
    return parent


@router.get("/me/children", response_model=list[schemas.Child])
def list_children(
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    return parent_service.list_children(db, parent)


@router.post("/me/children", response_model=schemas.Child, status_code=status.HTTP_201_CREATED)
def add_child(
    payload: schemas.ChildCreate,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    return parent_service.add_child(db, parent, payload.model_dump())


@router.patch("/me/children/{child_id}", response_model=schemas.Child)
def update_child(
    child_id: int,
    payload: schemas.ChildUpdate,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    try:
        return parent_service.update_child(
            db, parent, child_id, payload.model_dump(exclude_unset=True)
        )
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.delete("/me/children/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_child(
    child_id: int,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    try:
        parent_service.delete_child(db, parent, child_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

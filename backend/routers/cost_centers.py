from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from crud import cost_centers as crud
from schemas import cost_center as schemas
from utils.tenancy import get_tenant_db, get_tenant_id

router = APIRouter(
    prefix="/cost-centers",
    tags=["Cost Centers"],
)


@router.post("/", response_model=schemas.CostCenter, status_code=status.HTTP_201_CREATED)
def create_cost_center(cost_center: schemas.CostCenterCreate, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    try:
        return crud.create_cost_center(db, cost_center, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=List[schemas.CostCenter])
def read_cost_centers(db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    return crud.get_cost_centers(db, tenant_id)


@router.get("/{cost_center_id}", response_model=schemas.CostCenter)
def read_cost_center(cost_center_id: int, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    db_cost_center = crud.get_cost_center(db, cost_center_id, tenant_id)
    if db_cost_center is None:
        raise HTTPException(status_code=404, detail="Cost center not found")
    return db_cost_center


@router.patch("/{cost_center_id}", response_model=schemas.CostCenter)
def update_cost_center(cost_center_id: int, cost_center: schemas.CostCenterUpdate, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    try:
        db_cost_center = crud.update_cost_center(db, cost_center_id, cost_center, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if db_cost_center is None:
        raise HTTPException(status_code=404, detail="Cost center not found")
    return db_cost_center


@router.delete("/{cost_center_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cost_center(cost_center_id: int, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    try:
        deleted = crud.delete_cost_center(db, cost_center_id, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Cost center not found")

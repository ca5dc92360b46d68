"""Department routes."""
from fastapi import APIRouter, Depends

from burnboard.api.deps import get_storage
from burnboard.models.schemas import DepartmentListResponse, DepartmentOut
from burnboard.services.storage import Storage

router = APIRouter(prefix="/api/departments", tags=["Departments"])


@router.get("", response_model=DepartmentListResponse)
async def list_departments(storage: Storage = Depends(get_storage)):
    departments = await storage.list_departments()
    return DepartmentListResponse(departments=[DepartmentOut.model_validate(d) for d in departments])

"""
Program Capacity API Routes
"""

from fastapi import APIRouter, status

from admissions_crm.api.dependencies import (
    AdminContextDep,
    CapacityServiceDep,
    StaffContextDep,
)
from admissions_crm.infrastructure.db.models import ProgramCapacityCreate, ProgramCapacityUpdate

router = APIRouter(prefix="/api/program-capacity", tags=["program-capacity"])


@router.get("")
async def list_capacity(context: StaffContextDep, service: CapacityServiceDep):
    return await service.list()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_capacity(
    data: ProgramCapacityCreate,
    context: AdminContextDep,
    service: CapacityServiceDep,
):
    return await service.create(data)


@router.get("/{program_name}")
async def get_capacity(program_name: str, context: StaffContextDep, service: CapacityServiceDep):
    return await service.get_by_program(program_name)


@router.get("/{program_name}/availability")
async def get_availability(
    program_name: str,
    context: StaffContextDep,
    service: CapacityServiceDep,
):
    return await service.availability(program_name)


@router.patch("/{program_name}")
async def update_capacity(
    program_name: str,
    data: ProgramCapacityUpdate,
    context: AdminContextDep,
    service: CapacityServiceDep,
):
    return await service.update(program_name, data)


@router.delete("/{program_name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_capacity(program_name: str, context: AdminContextDep, service: CapacityServiceDep):
    await service.delete(program_name)

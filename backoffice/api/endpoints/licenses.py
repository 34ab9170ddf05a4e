from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from backoffice.api.dependencies import get_license_service
from backoffice.database.models import License, LicenseType
from backoffice.services.license_service import LicenseService, LicenseValidationResult, generate_machine_id

router = APIRouter(prefix="/api/license", tags=["License"])


class ValidateLicenseRequest(BaseModel):
    license_key: str = Field(..., min_length=1)


class ActivateLicenseRequest(BaseModel):
    license_key: str = Field(..., min_length=1)
    company_name: Optional[str] = None
    contact_email: Optional[str] = None
    machine_id: Optional[str] = None


class CreateLicenseRequest(BaseModel):
    company_name: str = Field(..., min_length=1)
    contact_email: str = Field(..., min_length=3)
    type: LicenseType = LicenseType.MONTHLY
    max_users: int = Field(default=5, ge=1)
    notes: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _type_by_name(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip().isdigit():
            try:
                return LicenseType[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown license type: {value}")
        return value


class ExtendLicenseRequest(BaseModel):
    days: int = Field(..., gt=0)


def _license(license: License) -> Dict[str, Any]:
    data = asdict(license)
    data["type"] = license.type.name
    for key in ("expires_at", "created_at", "last_checked"):
        if data[key] is not None:
            data[key] = data[key].isoformat()
    return data


def _validation(result: LicenseValidationResult) -> Dict[str, Any]:
    return {
        "success": result.is_valid,
        "message": result.message,
        "days_remaining": result.days_remaining,
        "is_expired": result.is_expired,
        "is_expiring_soon": result.is_expiring_soon,
        "license": _license(result.license) if result.license else None,
    }


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.post("/validate")
async def validate_license(request: ValidateLicenseRequest, service: LicenseService = Depends(get_license_service)):
    return _validation(service.validate(request.license_key))


@router.post("/activate")
async def activate_license(request: ActivateLicenseRequest, service: LicenseService = Depends(get_license_service)):
    ok, message, license = service.activate(
        request.license_key,
        machine_id=request.machine_id or generate_machine_id(),
        company_name=request.company_name,
        contact_email=request.contact_email,
    )
    if not ok:
        return _fail(status.HTTP_400_BAD_REQUEST, message)
    return {"success": True, "message": message, "data": _license(license)}


@router.get("/machine-id")
async def machine_id():
    return {"success": True, "machine_id": generate_machine_id()}


@router.get("/active")
async def active_license(service: LicenseService = Depends(get_license_service)):
    license = service.get_active_license()
    if license is None:
        return _fail(status.HTTP_404_NOT_FOUND, "No active license found")
    return {"success": True, "data": _license(license)}


@router.get("")
async def list_licenses(service: LicenseService = Depends(get_license_service)):
    return {"success": True, "data": [_license(lic) for lic in service.list_licenses()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_license(request: CreateLicenseRequest, service: LicenseService = Depends(get_license_service)):
    license = service.create(
        company_name=request.company_name,
        contact_email=request.contact_email,
        license_type=request.type,
        max_users=request.max_users,
        notes=request.notes,
    )
    return {"success": True, "message": "License created", "data": _license(license)}


@router.post("/{license_key}/extend")
async def extend_license(
    license_key: str,
    request: ExtendLicenseRequest,
    service: LicenseService = Depends(get_license_service),
):
    ok, message = service.extend(license_key, request.days)
    if not ok:
        return _fail(status.HTTP_404_NOT_FOUND, message)
    return {"success": True, "message": message}


@router.post("/{license_key}/revoke")
async def revoke_license(license_key: str, service: LicenseService = Depends(get_license_service)):
    if not service.revoke(license_key):
        return _fail(status.HTTP_404_NOT_FOUND, "License not found")
    return {"success": True, "message": "License revoked"}


@router.get("/statistics")
async def license_statistics(service: LicenseService = Depends(get_license_service)):
    return {"success": True, "data": asdict(service.statistics())}


@router.get("/expiring-soon")
async def expiring_soon(
    days: int = Query(7, ge=1, le=365),
    service: LicenseService = Depends(get_license_service),
):
    return {"success": True, "data": [_license(lic) for lic in service.expiring_soon(days)]}

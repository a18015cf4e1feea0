from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from s3_gateway.api.deps import get_services
from s3_gateway.services.bundle import ServiceBundle

router = APIRouter()


@router.get(
    "/list-buckets",
    response_model=List[str],
    summary="List buckets",
    description="Names of every bucket visible to the configured identity.",
)
def list_buckets(services: ServiceBundle = Depends(get_services)) -> List[str]:
    return services.file().list_buckets()

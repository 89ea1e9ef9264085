"""Snapshot export route."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_gateway
from ..storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=dict)
async def export_data(gateway: PersistenceGateway = Depends(get_gateway)) -> dict:
    """Export every stored envelope under the application namespace.

    Raises:
        HTTPException: 503 if the key-value store is unavailable
    """
    bundle = gateway.export_snapshot()
    if bundle is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is not available"
        )

    logger.info(f"Exported {len(bundle['data'])} stored entries")
    return bundle

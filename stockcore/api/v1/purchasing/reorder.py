"""Reorder Engine API endpoints"""

from fastapi import APIRouter, Depends
from typing import List

from stockcore.api import deps
from stockcore.schemas.reorder import ReorderCandidate, ReorderScanResult
from stockcore.services.purchasing import ReorderEngine

router = APIRouter()


@router.post("/scan", response_model=ReorderScanResult)
def run_reorder_scan(engine: ReorderEngine = Depends(deps.get_reorder_engine)):
    """
    Raise pending purchase orders for every product at or below its
    reorder level that has no open auto-generated order.
    """
    return engine.scan()


@router.get("/candidates", response_model=List[ReorderCandidate])
def reorder_candidates(engine: ReorderEngine = Depends(deps.get_reorder_engine)):
    """
    Preview what a scan would order, without creating anything.
    """
    return engine.candidates()

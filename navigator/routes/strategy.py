from fastapi import APIRouter

from navigator.routes.utils import failure_message, ok
from navigator.schemas.common import ApiResponse
from navigator.schemas.strategy import RecommendRequest, StrategyRecommendation
from navigator.services.normalizer import require_fields
from navigator.services.strategy import recommend

router = APIRouter()


@router.post("/recommend", response_model=ApiResponse[StrategyRecommendation], response_model_exclude_none=True)
async def recommend_strategy(req: RecommendRequest):
    require_fields(address=req.address)
    with failure_message("Failed to generate strategy recommendation"):
        recommendation = recommend(req.address, req.risk_preference)
    return ok(recommendation)

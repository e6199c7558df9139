from fastapi import Depends, Path
from fastapi.routing import APIRouter

from gas_suggestion_api.models.gas_models import (
    FeeModelResponse,
    GasSuggestion,
    SuggestionRequest,
)
from gas_suggestion_api.rest_api import dependencies
from gas_suggestion_api.utils.errors import responses

gas_routes = APIRouter()


@gas_routes.post('/{chain_id}/suggest', response_model=GasSuggestion, responses=responses)
@gas_routes.post('/{chain_id}/suggest/', include_in_schema=False, response_model=GasSuggestion)
async def suggest_gas_params(
    request: SuggestionRequest,
    chain_id: int = Path(..., description='Chain ID'),
    gas_service: dependencies.GasService = Depends(dependencies.gas_service),
) -> GasSuggestion:
    """
    Suggests gas limit and fee parameters for a call on a given chain.
    Returned object has fee_model "dynamic" with max_fee and max_priority_fee
    for chains that support EIP-1559, and fee_model "legacy" with gas_price otherwise.
    """
    return await gas_service.suggest(chain_id, request)


@gas_routes.get('/{chain_id}/fee-model', response_model=FeeModelResponse, responses=responses)
@gas_routes.get('/{chain_id}/fee-model/', include_in_schema=False, response_model=FeeModelResponse)
async def get_fee_model(
    chain_id: int = Path(..., description='Chain ID'),
    gas_service: dependencies.GasService = Depends(dependencies.gas_service),
) -> FeeModelResponse:
    """Returns whether the chain prices gas with EIP-1559 fees or a legacy gas price."""
    fee_model = await gas_service.get_fee_model(chain_id)
    return FeeModelResponse(chain_id=chain_id, fee_model=fee_model)

from gas_suggestion_api.clients.blockchain.node_client import NodeClient
from gas_suggestion_api.config.gas import GasConfig
from gas_suggestion_api.models.gas_models import CallIntent
from gas_suggestion_api.utils.common import scale_up
from gas_suggestion_api.utils.errors import (
    ExecutionReverted,
    InvalidNodeResponse,
    NodeClientError,
    NodeRequestError,
    SimulationReverted,
    Stage,
)
from gas_suggestion_api.utils.logger import get_logger

logger = get_logger(__name__)


async def estimate_gas_limit(
    node_client: NodeClient, intent: CallIntent, config: GasConfig
) -> int:
    """
    Simulate the call and pad the estimate with GAS_LIMIT_MARGIN, rounding up.
    A reverting call is reported, never replaced by a default limit.
    """
    try:
        estimate = await node_client.estimate_gas(intent)
    except ExecutionReverted as e:
        raise SimulationReverted(Stage.GAS_LIMIT, str(e)) from e
    except NodeClientError as e:
        raise NodeRequestError(Stage.GAS_LIMIT, str(e)) from e
    if estimate <= 0:
        raise InvalidNodeResponse(Stage.GAS_LIMIT, f'Node estimated {estimate} gas')
    gas_limit = scale_up(estimate, config.GAS_LIMIT_MARGIN)
    logger.debug('Simulated %s gas, suggesting limit %s', estimate, gas_limit)
    return gas_limit

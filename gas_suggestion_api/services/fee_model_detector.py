from gas_suggestion_api.clients.blockchain.node_client import NodeClient
from gas_suggestion_api.config.gas import GasConfig
from gas_suggestion_api.models.enums import FeeModel
from gas_suggestion_api.utils.errors import NodeClientError, NodeUnavailable, Stage
from gas_suggestion_api.utils.logger import get_logger

logger = get_logger(__name__)


async def detect_fee_model(node_client: NodeClient, config: GasConfig) -> FeeModel:
    """
    Detect whether the chain prices gas with EIP-1559 base and priority fees.

    A chain is dynamic when eth_feeHistory answers with at least one non-zero
    base fee. Otherwise the legacy gas price is probed, and if that fails too
    the node is considered unavailable. Nothing is cached between calls.
    """
    try:
        samples = await node_client.fee_history(config.DETECTION_BLOCK_COUNT, [])
    except NodeClientError as e:
        logger.debug('Fee history is not available, probing legacy gas price: %s', e)
    else:
        if any(sample.base_fee for sample in samples):
            return FeeModel.DYNAMIC
        logger.debug('Fee history has no base fees, probing legacy gas price')

    try:
        await node_client.gas_price()
    except NodeClientError as e:
        raise NodeUnavailable(Stage.DETECTION, str(e)) from e
    return FeeModel.LEGACY

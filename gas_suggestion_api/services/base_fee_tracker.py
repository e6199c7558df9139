from gas_suggestion_api.clients.blockchain.node_client import NodeClient
from gas_suggestion_api.config.gas import GasConfig
from gas_suggestion_api.models.gas_models import BaseFeeSnapshot
from gas_suggestion_api.utils.async_utils import run_queries
from gas_suggestion_api.utils.errors import NodeClientError, NodeRequestError, Stage
from gas_suggestion_api.utils.logger import get_logger

logger = get_logger(__name__)


async def get_legacy_gas_price(node_client: NodeClient) -> int:
    try:
        gas_price = await node_client.gas_price()
    except NodeClientError as e:
        raise NodeRequestError(Stage.BASE_FEE, str(e)) from e
    logger.debug('Node gas price is %s', gas_price)
    return gas_price


async def get_base_fee_snapshot(
    node_client: NodeClient,
    config: GasConfig,
    concurrent: bool = True,
) -> BaseFeeSnapshot:
    """Latest block base fee together with the recent base fee window for trend checks."""
    try:
        latest, history = await run_queries(
            node_client.latest_base_fee(),
            node_client.fee_history(config.BASE_FEE_WINDOW, []),
            concurrent=concurrent,
        )
    except NodeClientError as e:
        raise NodeRequestError(Stage.BASE_FEE, str(e)) from e
    snapshot = BaseFeeSnapshot(latest=latest, window=[sample.base_fee for sample in history])
    logger.debug('Latest base fee is %s, rising: %s', snapshot.latest, snapshot.is_rising)
    return snapshot

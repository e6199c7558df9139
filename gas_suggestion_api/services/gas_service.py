import asyncio
from typing import Any, Optional, Union

import pydantic

from gas_suggestion_api.clients.blockchain.node_client import NodeClient
from gas_suggestion_api.clients.blockchain.web3_client import Web3NodeClient
from gas_suggestion_api.config import Config
from gas_suggestion_api.config import config as default_config
from gas_suggestion_api.config.gas import GasConfig, TierPolicy
from gas_suggestion_api.models.enums import FeeModel, UrgencyTier
from gas_suggestion_api.models.gas_models import (
    CallIntent,
    GasSuggestion,
    SuggestionRequest,
)
from gas_suggestion_api.services.base_fee_tracker import (
    get_base_fee_snapshot,
    get_legacy_gas_price,
)
from gas_suggestion_api.services.fee_model_detector import detect_fee_model
from gas_suggestion_api.services.gas_limit_estimator import estimate_gas_limit
from gas_suggestion_api.services.parameter_assembler import (
    assemble_dynamic,
    assemble_legacy,
)
from gas_suggestion_api.services.priority_fee_estimator import (
    estimate_legacy_gas_price,
    fetch_priority_fee,
    resolve_tier_policy,
)
from gas_suggestion_api.utils.async_utils import run_queries
from gas_suggestion_api.utils.common import get_web3_url
from gas_suggestion_api.utils.errors import (
    BaseGasSuggestionError,
    InvalidCallIntent,
    OurMistakes,
    Stage,
    SuggestionCancelled,
    SuggestionTimeout,
)
from gas_suggestion_api.utils.logger import LogArgs, get_logger

logger = get_logger(__name__)


async def suggest_gas_params(
    node_client: NodeClient,
    sender: str,
    recipient: Optional[str],
    value: int,
    payload: Union[bytes, str],
    tier: Any,
    *,
    config: Optional[GasConfig] = None,
    timeout: Optional[float] = None,
) -> GasSuggestion:
    """
    Suggest gas limit and fee parameters for a call.

    Args:
        node_client: chain access, see NodeClient
        sender: address the call is sent from
        recipient: called address, None for contract creation
        value: wei sent with the call
        payload: call data as bytes or hex string
        tier: UrgencyTier or its value
        config: gas settings, application config by default
        timeout: seconds the whole suggestion may take, SUGGESTION_TIMEOUT by default

    Returns:
        LegacyGasSuggestion or DynamicGasSuggestion depending on the chain fee model.

    Raises:
        BaseGasSuggestionError subclasses, never together with a partial result.
    """
    config = config or default_config
    timeout = config.SUGGESTION_TIMEOUT if timeout is None else timeout
    try:
        tier, policy = resolve_tier_policy(tier, config)
        intent = _build_intent(sender, recipient, value, payload)
        suggestion = await _suggest_with_deadline(node_client, intent, tier, policy, config, timeout)
    except BaseGasSuggestionError as e:
        msg, log_args = e.to_log_args()
        log = logger.error if isinstance(e, OurMistakes) else logger.warning
        log(msg, log_args, extra=log_args)
        raise

    log_args = {
        LogArgs.fee_model: suggestion.fee_model.value,
        LogArgs.tier: tier.value,
        LogArgs.sender: intent.sender,
        LogArgs.recipient: intent.recipient,
        **suggestion.model_dump(include={
            LogArgs.gas_limit,
            LogArgs.gas_price,
            LogArgs.max_fee,
            LogArgs.max_priority_fee,
            LogArgs.base_fee,
        }),
    }
    logger.info(
        f'Suggested %({LogArgs.fee_model})s gas params for %({LogArgs.tier})s tier, '
        f'gas limit %({LogArgs.gas_limit})s',
        log_args,
        extra=log_args,
    )
    return suggestion


def _build_intent(
    sender: str, recipient: Optional[str], value: int, payload: Union[bytes, str]
) -> CallIntent:
    try:
        return CallIntent(sender=sender, recipient=recipient, value=value, payload=payload)
    except pydantic.ValidationError as e:
        reason = '; '.join(
            f"{'.'.join(map(str, error['loc']))}: {error['msg']}" for error in e.errors()
        )
        raise InvalidCallIntent(Stage.REQUEST, reason) from e


async def _suggest_with_deadline(
    node_client: NodeClient,
    intent: CallIntent,
    tier: UrgencyTier,
    policy: TierPolicy,
    config: GasConfig,
    timeout: float,
) -> GasSuggestion:
    try:
        async with asyncio.timeout(timeout):
            return await _suggest(node_client, intent, tier, policy, config)
    except TimeoutError as e:
        raise SuggestionTimeout(Stage.REQUEST, f'No suggestion within {timeout}s') from e
    except asyncio.CancelledError:
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            # the caller cancelled the request itself
            raise
        raise SuggestionCancelled(Stage.REQUEST, 'Node query was cancelled') from None


async def _suggest(
    node_client: NodeClient,
    intent: CallIntent,
    tier: UrgencyTier,
    policy: TierPolicy,
    config: GasConfig,
) -> GasSuggestion:
    fee_model = await detect_fee_model(node_client, config)
    logger.debug('Detected %s fee model', fee_model.value)
    concurrent = getattr(node_client, 'concurrent_safe', False)

    match fee_model:
        case FeeModel.LEGACY:
            gas_price, gas_limit = await run_queries(
                get_legacy_gas_price(node_client),
                estimate_gas_limit(node_client, intent, config),
                concurrent=concurrent,
            )
            return assemble_legacy(
                tier, estimate_legacy_gas_price(gas_price, policy), gas_limit, config
            )
        case FeeModel.DYNAMIC:
            base_fee, priority_fee, gas_limit = await run_queries(
                get_base_fee_snapshot(node_client, config, concurrent=concurrent),
                fetch_priority_fee(node_client, tier, policy, config),
                estimate_gas_limit(node_client, intent, config),
                concurrent=concurrent,
            )
            return assemble_dynamic(tier, base_fee, priority_fee, gas_limit, config)


class GasService:
    def __init__(self, config: Config):
        self.config = config

    def get_node_client(self, chain_id: int) -> Web3NodeClient:
        return Web3NodeClient(get_web3_url(chain_id, self.config), self.config)

    async def get_fee_model(self, chain_id: int) -> FeeModel:
        logger.debug('Detecting fee model for network %s', chain_id)
        try:
            async with asyncio.timeout(self.config.SUGGESTION_TIMEOUT):
                return await detect_fee_model(self.get_node_client(chain_id), self.config)
        except TimeoutError as e:
            raise SuggestionTimeout(Stage.DETECTION, f'No fee model for network {chain_id}') from e

    async def suggest(self, chain_id: int, request: SuggestionRequest) -> GasSuggestion:
        log_args = {LogArgs.chain_id: chain_id}
        logger.debug(f'Suggesting gas params for network %({LogArgs.chain_id})s', log_args, extra=log_args)
        return await suggest_gas_params(
            self.get_node_client(chain_id),
            request.sender,
            request.recipient,
            request.value,
            request.payload,
            request.tier,
            config=self.config,
        )

from typing import Any, Optional, Sequence

from gas_suggestion_api.clients.blockchain.node_client import NodeClient
from gas_suggestion_api.config.gas import GasConfig, TierPolicy
from gas_suggestion_api.models.enums import UrgencyTier
from gas_suggestion_api.models.gas_models import FeeHistorySample
from gas_suggestion_api.utils.common import scale_up
from gas_suggestion_api.utils.errors import (
    InvalidTier,
    NodeClientError,
    NodeRequestError,
    Stage,
)
from gas_suggestion_api.utils.logger import get_logger

logger = get_logger(__name__)


def resolve_tier_policy(tier: Any, config: GasConfig) -> tuple[UrgencyTier, TierPolicy]:
    tier = UrgencyTier.parse(tier)
    policy = config.TIER_POLICIES.get(tier)
    if policy is None:
        raise InvalidTier(Stage.PRIORITY_FEE, f'No pricing policy for tier {tier.value}')
    return tier, policy


def percentile(values: Sequence[int], pct: int) -> int:
    """
    Nearest-rank percentile rounding down, so the median of an even-length
    sample is the lower of the two middle values.
    """
    if not values:
        raise ValueError('percentile of an empty sample')
    ordered = sorted(values)
    return ordered[(len(ordered) - 1) * pct // 100]


def lowest_observed_tip(samples: Sequence[FeeHistorySample]) -> Optional[int]:
    """Smallest non-zero reward at any requested percentile, None for an empty or all-zero window."""
    return min(
        (reward for sample in samples for reward in sample.rewards.values() if reward),
        default=None,
    )


def fallback_priority_fee(tier: UrgencyTier, policy: TierPolicy) -> int:
    return policy.fallback_priority_fee * tier.ordinal


def estimate_priority_fee(
    samples: Sequence[FeeHistorySample],
    tier: UrgencyTier,
    policy: TierPolicy,
) -> int:
    """
    Tip for the tier from a fee history window.

    Every block contributes its reward at the tier percentile, and the same
    percentile of that pool is the tip. A zero tip is never returned:
    when the tier percentile gives zero, the lowest non-zero reward seen in
    the window is used, so a higher tier still never pays less than a lower one.
    An empty or all-zero window falls back to the tier's fixed minimum tip
    scaled by the tier ordinal.
    """
    pct = policy.reward_percentile
    pooled = [sample.rewards[pct] for sample in samples if pct in sample.rewards]
    tip = percentile(pooled, pct) if pooled else 0
    if tip:
        return tip

    tip = lowest_observed_tip(samples)
    if tip is not None:
        logger.info('No %s tip at percentile %s, using lowest observed tip %s', tier.value, pct, tip)
        return tip

    tip = fallback_priority_fee(tier, policy)
    logger.info('Fee history is empty or zero, using fallback tip %s for %s', tip, tier.value)
    return tip


def estimate_legacy_gas_price(gas_price: int, policy: TierPolicy) -> int:
    """Tier multiplier applied to the node gas price, never below the node gas price."""
    return max(scale_up(gas_price, policy.legacy_multiplier), gas_price)


async def fetch_priority_fee(
    node_client: NodeClient,
    tier: UrgencyTier,
    policy: TierPolicy,
    config: GasConfig,
) -> int:
    percentiles = sorted({p.reward_percentile for p in config.TIER_POLICIES.values()})
    try:
        samples = await node_client.fee_history(config.PRIORITY_FEE_WINDOW, percentiles)
    except NodeClientError as e:
        raise NodeRequestError(Stage.PRIORITY_FEE, str(e)) from e
    tip = estimate_priority_fee(samples, tier, policy)
    logger.debug('Priority fee for %s is %s over %s blocks', tier.value, tip, len(samples))
    return tip

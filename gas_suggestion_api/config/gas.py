from decimal import Decimal

from pydantic import BaseModel, Field, conint, field_validator
from pydantic_settings import BaseSettings

from gas_suggestion_api.models.enums import UrgencyTier

GWEI = 10**9


class TierPolicy(BaseModel):
    """
    How a single urgency tier is priced.

    reward_percentile: fee-history percentile used for the tip on dynamic chains
    legacy_multiplier: multiplier applied to the node gas price on legacy chains
    fallback_priority_fee: base tip in wei used when fee history is empty or all zero,
        scaled by the tier ordinal
    """

    reward_percentile: conint(ge=0, le=100)
    legacy_multiplier: Decimal = Field(gt=0)
    fallback_priority_fee: conint(gt=0) = GWEI


DEFAULT_TIER_POLICIES = {
    UrgencyTier.SLOW: TierPolicy(reward_percentile=10, legacy_multiplier=Decimal('0.9')),
    UrgencyTier.NORMAL: TierPolicy(reward_percentile=50, legacy_multiplier=Decimal('1.0')),
    UrgencyTier.FAST: TierPolicy(reward_percentile=90, legacy_multiplier=Decimal('1.2')),
}


class GasConfig(BaseSettings):
    DETECTION_BLOCK_COUNT: conint(gt=0) = 4
    BASE_FEE_WINDOW: conint(gt=0) = 5
    PRIORITY_FEE_WINDOW: conint(gt=0) = 20
    BASE_FEE_MARGIN: Decimal = Decimal('1.2')
    RISING_BASE_FEE_MARGIN: Decimal = Decimal('1.5')
    GAS_LIMIT_MARGIN: Decimal = Decimal('1.2')
    MAX_FEE_PER_GAS: conint(gt=0) = 10_000 * GWEI
    SUGGESTION_TIMEOUT: float = 15
    TIER_POLICIES: dict[UrgencyTier, TierPolicy] = DEFAULT_TIER_POLICIES

    @field_validator('BASE_FEE_MARGIN', 'RISING_BASE_FEE_MARGIN', 'GAS_LIMIT_MARGIN')
    @classmethod
    def margin_not_below_one(cls, value: Decimal) -> Decimal:
        if value < 1:
            raise ValueError('margin must be at least 1.0')
        return value

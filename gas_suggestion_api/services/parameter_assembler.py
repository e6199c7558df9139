from gas_suggestion_api.config.gas import GasConfig
from gas_suggestion_api.models.enums import UrgencyTier
from gas_suggestion_api.models.gas_models import (
    BaseFeeSnapshot,
    DynamicGasSuggestion,
    LegacyGasSuggestion,
)
from gas_suggestion_api.utils.common import scale_up
from gas_suggestion_api.utils.errors import (
    InternalInvariantViolation,
    Stage,
    UnreasonableFee,
)


def _check_gas_limit(gas_limit: int) -> None:
    if gas_limit <= 0:
        raise InternalInvariantViolation(Stage.ASSEMBLY, f'Gas limit {gas_limit} is not positive')


def _check_ceiling(fee: int, config: GasConfig) -> None:
    if fee > config.MAX_FEE_PER_GAS:
        raise UnreasonableFee(
            Stage.ASSEMBLY,
            f'Fee {fee} is above the ceiling {config.MAX_FEE_PER_GAS}',
            fee=fee,
            ceiling=config.MAX_FEE_PER_GAS,
        )


def assemble_legacy(
    tier: UrgencyTier, gas_price: int, gas_limit: int, config: GasConfig
) -> LegacyGasSuggestion:
    _check_gas_limit(gas_limit)
    _check_ceiling(gas_price, config)
    return LegacyGasSuggestion(tier=tier, gas_limit=gas_limit, gas_price=gas_price)


def assemble_dynamic(
    tier: UrgencyTier,
    base_fee: BaseFeeSnapshot,
    priority_fee: int,
    gas_limit: int,
    config: GasConfig,
) -> DynamicGasSuggestion:
    """
    max_fee = latest base fee * margin + tip, with the larger margin when
    the base fee has been rising over the tracked window.
    """
    margin = config.BASE_FEE_MARGIN
    if base_fee.is_rising:
        margin = max(margin, config.RISING_BASE_FEE_MARGIN)
    max_fee = scale_up(base_fee.latest, margin) + priority_fee

    _check_gas_limit(gas_limit)
    if max_fee < priority_fee or max_fee < base_fee.latest + priority_fee:
        raise InternalInvariantViolation(
            Stage.ASSEMBLY,
            f'Fee cap {max_fee} does not cover base fee {base_fee.latest} and tip {priority_fee}',
        )
    _check_ceiling(max_fee, config)
    return DynamicGasSuggestion(
        tier=tier,
        gas_limit=gas_limit,
        max_priority_fee=priority_fee,
        max_fee=max_fee,
        base_fee=base_fee.latest,
    )

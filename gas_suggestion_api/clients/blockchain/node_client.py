from typing import Protocol, Sequence

from gas_suggestion_api.models.gas_models import CallIntent, FeeHistorySample


class NodeClient(Protocol):
    """
    Read-only chain access the gas suggestion pipeline depends on.

    Every method is a network call and may raise NodeConnectionError when the
    node cannot be reached or NodeRPCError when it answers with an error.
    estimate_gas raises ExecutionReverted when the simulated call reverts.
    Implementations are not assumed to be safe for concurrent use unless
    they set a truthy concurrent_safe attribute, as Web3NodeClient does.
    """

    async def gas_price(self) -> int:
        """Current legacy gas price in wei."""

    async def latest_base_fee(self) -> int:
        """Base fee of the latest block in wei."""

    async def fee_history(
        self, block_count: int, reward_percentiles: Sequence[int]
    ) -> list[FeeHistorySample]:
        """Fee history of the last block_count blocks, most recent last."""

    async def estimate_gas(self, intent: CallIntent) -> int:
        """Simulate the call against the latest state and return the gas used."""

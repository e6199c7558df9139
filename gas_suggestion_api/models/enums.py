from enum import Enum
from typing import Any


class UrgencyTier(str, Enum):
    SLOW = 'slow'
    NORMAL = 'normal'
    FAST = 'fast'

    @property
    def ordinal(self) -> int:
        return _TIER_ORDINALS[self]

    @classmethod
    def parse(cls, value: Any) -> 'UrgencyTier':
        """Accepts a member or its string value, raises InvalidTier otherwise."""
        # errors import the logger, which imports config, which imports this module
        from gas_suggestion_api.utils.errors import InvalidTier, Stage

        try:
            return cls(value)
        except ValueError:
            raise InvalidTier(Stage.PRIORITY_FEE, f'Unknown urgency tier {value!r}') from None


_TIER_ORDINALS = {
    UrgencyTier.SLOW: 1,
    UrgencyTier.NORMAL: 2,
    UrgencyTier.FAST: 3,
}


class FeeModel(str, Enum):
    LEGACY = 'legacy'
    DYNAMIC = 'dynamic'

from typing import Annotated, Literal, Optional, Union

from hexbytes import HexBytes
from pydantic import BaseModel, ConfigDict, Field, conint, field_validator
from web3 import Web3
from web3.types import TxParams

from gas_suggestion_api.models.enums import FeeModel, UrgencyTier


def _to_checksum_address(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not Web3.is_address(value):
        raise ValueError(f'{value} is not a valid address')
    return Web3.to_checksum_address(value)


class CallIntent(BaseModel):
    """A pending call to price. recipient is None for contract creation."""
    model_config = ConfigDict(frozen=True)

    sender: str
    recipient: Optional[str] = None
    value: conint(ge=0) = 0
    payload: bytes = b''

    @field_validator('sender', 'recipient')
    @classmethod
    def checksum_address(cls, value: Optional[str]) -> Optional[str]:
        return _to_checksum_address(value)

    @field_validator('payload', mode='before')
    @classmethod
    def payload_from_hex(cls, value):
        if isinstance(value, str):
            return bytes(HexBytes(value))
        return value

    def to_call_params(self) -> TxParams:
        params: TxParams = {
            'from': self.sender,
            'value': self.value,
            'data': Web3.to_hex(self.payload),
        }
        if self.recipient:
            params['to'] = self.recipient
        return params


class FeeHistorySample(BaseModel):
    """One block of eth_feeHistory: its base fee and the tips at requested percentiles."""
    model_config = ConfigDict(frozen=True)

    block_number: Optional[int] = None
    base_fee: conint(ge=0)
    rewards: dict[int, conint(ge=0)] = {}


class BaseFeeSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    latest: conint(ge=0)
    window: list[conint(ge=0)] = []

    @property
    def is_rising(self) -> bool:
        return len(self.window) >= 2 and self.window[-1] > self.window[0]


class LegacyGasSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    fee_model: Literal[FeeModel.LEGACY] = FeeModel.LEGACY
    tier: UrgencyTier
    gas_limit: conint(gt=0)
    gas_price: conint(ge=0)

    def to_tx_params(self) -> TxParams:
        return {
            'gas': self.gas_limit,
            'gasPrice': self.gas_price,
        }


class DynamicGasSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    fee_model: Literal[FeeModel.DYNAMIC] = FeeModel.DYNAMIC
    tier: UrgencyTier
    gas_limit: conint(gt=0)
    max_priority_fee: conint(ge=0)
    max_fee: conint(ge=0)
    base_fee: conint(ge=0)

    def to_tx_params(self) -> TxParams:
        return {
            'type': 2,
            'gas': self.gas_limit,
            'maxPriorityFeePerGas': self.max_priority_fee,
            'maxFeePerGas': self.max_fee,
        }


GasSuggestion = Annotated[
    Union[LegacyGasSuggestion, DynamicGasSuggestion],
    Field(discriminator='fee_model'),
]


class SuggestionRequest(BaseModel):
    sender: str
    recipient: Optional[str] = None
    value: conint(ge=0) = 0
    payload: str = Field('0x', description='Hex encoded call data')
    tier: UrgencyTier = UrgencyTier.NORMAL


class FeeModelResponse(BaseModel):
    chain_id: int
    fee_model: FeeModel

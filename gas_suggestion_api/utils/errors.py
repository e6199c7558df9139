from abc import abstractmethod
from enum import Enum
from typing import Optional

from starlette.responses import JSONResponse

from gas_suggestion_api.utils.logger import LogArgs


class Stage(str, Enum):
    """Suggestion pipeline stage an error originates from."""
    DETECTION = 'detection'
    BASE_FEE = 'base_fee'
    PRIORITY_FEE = 'priority_fee'
    GAS_LIMIT = 'gas_limit'
    ASSEMBLY = 'assembly'
    REQUEST = 'request'


class UserMistakes:
    code = 400
    error_owner = 'user'


class OurMistakes:
    code = 417
    error_owner = 'gas_suggestion_api'


class NodeMistakes:
    code = 409
    error_owner = 'node'


class BaseGasSuggestionError(Exception):
    """common error for the gas suggestion pipeline"""

    @property
    @abstractmethod
    def msg_to_log(self):
        ...

    @property
    @abstractmethod
    def code(self):
        ...

    @property
    @abstractmethod
    def error_owner(self):
        ...

    def __init__(self, stage: Stage, message: Optional[str] = None, **kwargs):
        super().__init__(stage, message)
        self.stage = stage
        self.message = message
        self.kwargs = kwargs

    def __str__(self):
        return f'{self.msg_to_log}. Stage: {self.stage.value}'

    def __repr__(self):
        return f'{self.__class__.__name__}({self.stage.value}, {self.message}, {self.kwargs})'

    def to_dict(self):
        return {
            'stage': self.stage.value,
            'reason': self.message,
            'error_owner': self.error_owner,
            **self.kwargs,
        }

    def to_log_args(self):
        return (
            f'{self.msg_to_log.lower()}. Stage: %({LogArgs.stage})s, reason: %({LogArgs.ex})s',
            {LogArgs.stage: self.stage.value, LogArgs.ex: self.message},
        )

    def to_http_exception(self) -> JSONResponse:
        return JSONResponse({
            'error': str(self),
            'reason': self.message,
            'stage': self.stage.value,
            'error_owner': self.error_owner,
        }, status_code=self.code)


class NodeRequestError(NodeMistakes, BaseGasSuggestionError):
    """Node client request failed during a pipeline stage"""
    msg_to_log = 'Node request failed'


class NodeUnavailable(NodeRequestError):
    """Neither fee history nor gas price could be fetched from the node"""
    msg_to_log = 'Node is unavailable'


class InvalidNodeResponse(NodeMistakes, BaseGasSuggestionError):
    """Node returned data that cannot be used for a suggestion"""
    msg_to_log = 'Invalid node response'


class SimulationReverted(UserMistakes, BaseGasSuggestionError):
    """The simulated call reverts, so no gas limit can be suggested"""
    msg_to_log = 'Call simulation reverted'


class InvalidTier(UserMistakes, BaseGasSuggestionError):
    """Urgency tier is unknown or has no pricing policy"""
    msg_to_log = 'Invalid urgency tier'


class InvalidCallIntent(UserMistakes, BaseGasSuggestionError):
    """Sender, recipient, value or payload of the call is malformed"""
    msg_to_log = 'Invalid call'


class UnreasonableFee(NodeMistakes, BaseGasSuggestionError):
    """Suggested fee exceeds the configured ceiling"""
    msg_to_log = 'Suggested fee exceeds ceiling'


class SuggestionCancelled(NodeMistakes, BaseGasSuggestionError):
    """A node query was cancelled before the suggestion completed"""
    msg_to_log = 'Suggestion cancelled'


class SuggestionTimeout(NodeMistakes, BaseGasSuggestionError):
    """Suggestion did not complete before its deadline"""
    msg_to_log = 'Suggestion timed out'


class InternalInvariantViolation(OurMistakes, BaseGasSuggestionError):
    """Assembled suggestion failed its own consistency check"""
    msg_to_log = 'Internal invariant violated'


class NodeClientError(Exception):
    """Raised by node clients, wrapped into pipeline errors by the services"""


class NodeConnectionError(NodeClientError):
    """Node could not be reached or did not answer in time"""


class NodeRPCError(NodeClientError):
    """Node answered with a JSON-RPC error or a malformed result"""


class ExecutionReverted(NodeRPCError):
    """Node reports that the simulated call reverts"""


responses = {
    UserMistakes.code: {
        'description': 'One of the following errors:<br><br>%s<br>%s<br>%s<br>' % (
            SimulationReverted.msg_to_log, InvalidTier.msg_to_log, InvalidCallIntent.msg_to_log,
        )},
    NodeMistakes.code: {
        'description': 'One of the following errors:<br><br>%s<br>%s<br>%s<br>%s<br>%s<br>%s' % (
            NodeRequestError.msg_to_log, NodeUnavailable.msg_to_log,
            InvalidNodeResponse.msg_to_log, UnreasonableFee.msg_to_log,
            SuggestionCancelled.msg_to_log, SuggestionTimeout.msg_to_log,
        )},
    OurMistakes.code: {
        'description': 'One of the following errors:<br><br>%s' % (
            InternalInvariantViolation.msg_to_log,
        )
    }
}

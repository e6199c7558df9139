from contextvars import ContextVar
from functools import lru_cache
from logging import LoggerAdapter, getLogger
from logging.config import dictConfig
from typing import Optional
from uuid import uuid4

from gas_suggestion_api.config import config

CORRELATION_ID = "cid"
SESSION_ID = "sid"
ERR = "err"  # error object log argument
ERR_TYPE = "err_type"  # error type log argument

# This field is keyword argument from <https://github.com/python/cpython/blob/3.11/Lib/logging/__init__.py#L1600>
#   and never changed.
EXTRA = "extra"

HANDLERS = {
    'console': {
        'class': 'logging.StreamHandler',
        'level': config.LOGGING_LEVEL,
        'formatter': 'simple',
        'stream': 'ext://sys.stdout'
    },
    'logstash': {
        'level': config.LOGSTASH_LOGGING_LEVEL,
        'class': 'logstash_async.handler.AsynchronousLogstashHandler',
        'transport': 'logstash_async.transport.TcpTransport',
        'formatter': 'logstash',
        'host': config.LOGSTASH,
        'port': config.PORT,
        'database_path': None,
        'event_ttl': 30  # sec
    },
}

CONFIG = dict(
    # See: <https://docs.python.org/3/library/logging.config.html#logging.config.fileConfig>
    # and find `disable_existing_loggers`, it's same configuration parameter as for dictConfig function.
    disable_existing_loggers=False,
    version=1,
    formatters={
        'simple': {
            'format': '%(asctime)s - %(filename)s:%(lineno)s:%(funcName)s - %(levelname)s - %(message)s'
        },
        'logstash': {
            '()': 'logstash_async.formatter.LogstashFormatter'
        }
    },
    # only configured handlers are instantiated, logstash is optional
    handlers={name: HANDLERS[name] for name in config.LOG_HANDLERS},
    root={
        'handlers': config.LOG_HANDLERS,
        'level': config.LOGGING_LEVEL,
    },
)

correlation_id = ContextVar(CORRELATION_ID, default=uuid4().hex)
session_id = ContextVar(SESSION_ID, default=None)


class CustomContextLogger(LoggerAdapter):

    def process(self, msg, kwargs):
        if EXTRA not in kwargs:
            kwargs[EXTRA] = dict(self.extra)
        else:
            kwargs[EXTRA].update(self.extra)

        # assigning a request correlation key to all log messages
        kwargs[EXTRA][CORRELATION_ID] = self.get_correlation_id()

        sid = kwargs[EXTRA].get(SESSION_ID, self.get_session_id())
        if sid:
            # assigning a user session correlation key to all log messages
            kwargs[EXTRA][SESSION_ID] = sid

        if ERR in kwargs[EXTRA] and ERR_TYPE not in kwargs[EXTRA]:
            kwargs[EXTRA][ERR_TYPE] = type(kwargs[EXTRA][ERR]).__name__

        return msg, kwargs

    @staticmethod
    def get_correlation_id():
        return correlation_id.get()

    @staticmethod
    def get_session_id():
        return session_id.get()


class LogArgs:
    chain_id = "chain_id"  # blockchain identifier
    web3_url = "web3_url"
    cache_size = "cache_size"
    stage = "stage"  # suggestion pipeline stage
    fee_model = "fee_model"
    tier = "tier"
    sender = "sender"
    recipient = "recipient"
    gas_limit = "gas_limit"
    gas_price = "gas_price"
    max_fee = "max_fee"
    max_priority_fee = "max_priority_fee"
    base_fee = "base_fee"
    ex = "ex"  # human readable exception description


@lru_cache(maxsize=None)
def _configure_logging() -> None:
    dictConfig(CONFIG)


def get_logger(name: str, extra: Optional[dict] = None, corr_id: Optional[str] = None) -> "CustomContextLogger":
    _configure_logging()

    extra = extra or {}

    if corr_id:
        correlation_id.set(corr_id)

    logger = CustomContextLogger(getLogger(name), extra)
    return logger


def set_correlation_id(corr_id: str):
    correlation_id.set(corr_id)


def set_session_id(sid: str):
    session_id.set(sid)

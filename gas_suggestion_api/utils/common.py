import math
from decimal import Decimal
from fractions import Fraction
from urllib.parse import urljoin

from gas_suggestion_api.config import Config


def get_web3_url(chain_id: int, config: Config) -> str:
    """
    get web3 url for chain_id
    By default, it uses public api domain from config, assuming that
    nodes for specific chains are proxied under /rpc/{chain_id}/{public_key} routes
    please adjust to return correct web3 url for your setup if needed
    """
    return urljoin(str(config.PUBLIC_API_DOMAIN), f'rpc/{chain_id}/{config.PUBLIC_KEY}')


def scale_up(amount: int, multiplier: Decimal) -> int:
    """Multiply a wei amount by a decimal multiplier exactly and round up."""
    return math.ceil(Fraction(amount) * Fraction(multiplier))

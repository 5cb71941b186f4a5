"""
Gas Reporter
Summarizes deployment gas usage and cost (enabled with REPORT_GAS)
"""

import asyncio
import os
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

import aiohttp
from web3 import Web3
from loguru import logger
from dotenv import load_dotenv

from deployer.result import DeploymentResult
from networks.profile import NetworkProfile

load_dotenv()


class GasReporter:
    """
    Gas/cost report for confirmed deployments

    USD pricing comes from GAS_REPORT_PRICE_USD, else from CoinGecko via
    the profile's price_feed_id, else is left out.
    """

    COINGECKO_API = "https://api.coingecko.com/api/v3/simple/price"

    def __init__(self, enabled: Optional[bool] = None, currency: str = 'usd'):
        """
        Initialize Gas Reporter

        Args:
            enabled: Force on/off (None = on when REPORT_GAS is set)
            currency: Fiat currency for the report
        """
        if enabled is None:
            enabled = os.getenv('REPORT_GAS') is not None
        self.enabled = enabled
        self.currency = currency.lower()

        self.fixed_price = _read_fixed_price()

    async def report(self, result: DeploymentResult, profile: NetworkProfile) -> Optional[Dict]:
        """
        Log the gas report for a confirmed deployment

        Returns:
            Report dict, or None when disabled or no gas data
        """
        if not self.enabled or not result.is_confirmed or result.gas_used is None:
            return None

        report = {
            'contract': result.contract_name,
            'network': result.network,
            'gas_used': result.gas_used,
            'gas_price_gwei': None,
            'cost_native': None,
            'native_token': profile.native_token_symbol,
            'cost_fiat': None,
        }

        # Without a gas price the cost is unknown, not zero
        gas_price = result.effective_gas_price
        if gas_price is not None:
            cost_native = Web3.from_wei(result.gas_used * gas_price, 'ether')
            report['gas_price_gwei'] = Web3.from_wei(gas_price, 'gwei')
            report['cost_native'] = cost_native

            price = await self.get_token_price(profile)
            if price is not None:
                report['cost_fiat'] = (cost_native * price).quantize(Decimal('0.01'))

        self._log(report)
        return report

    async def get_token_price(self, profile: NetworkProfile) -> Optional[Decimal]:
        """Native token price in the report currency, None if unavailable"""
        if self.fixed_price is not None:
            return self.fixed_price

        if not profile.price_feed_id:
            return None

        params = {'ids': profile.price_feed_id, 'vs_currencies': self.currency}

        try:
            timeout = aiohttp.ClientTimeout(total=10)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.COINGECKO_API, params=params) as response:
                    response.raise_for_status()
                    data = await response.json()

            return Decimal(str(data[profile.price_feed_id][self.currency]))

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Price lookup for {profile.price_feed_id} failed: {e}")
            return None
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning(f"Unexpected price response for {profile.price_feed_id}: {e}")
            return None

    def _log(self, report: Dict):
        logger.info("·" * 60)
        logger.info(f"Gas report: {report['contract']} on {report['network']}")
        logger.info(f"  Gas used:  {report['gas_used']:,}")
        if report['cost_native'] is not None:
            logger.info(f"  Gas price: {report['gas_price_gwei']:.2f} gwei")
            logger.info(f"  Cost:      {report['cost_native']:.6f} {report['native_token']}")
        if report['cost_fiat'] is not None:
            logger.info(f"  Cost:      {report['cost_fiat']} {self.currency.upper()}")
        logger.info("·" * 60)


def _read_fixed_price() -> Optional[Decimal]:
    """GAS_REPORT_PRICE_USD as a Decimal; ignored with a warning when not a number"""
    fixed_price = os.getenv('GAS_REPORT_PRICE_USD')
    if not fixed_price:
        return None
    try:
        price = Decimal(fixed_price.strip())
    except InvalidOperation:
        logger.warning(f"Ignoring GAS_REPORT_PRICE_USD={fixed_price!r}: not a number")
        return None
    if not price.is_finite() or price < 0:
        logger.warning(f"Ignoring GAS_REPORT_PRICE_USD={fixed_price!r}: not a valid price")
        return None
    return price

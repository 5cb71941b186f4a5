"""
Contract Verifier
Publishes contract sources to an Etherscan-compatible explorer
"""

import asyncio
import json
import os
from typing import Dict, Optional

import aiohttp
from eth_abi import encode
from loguru import logger
from dotenv import load_dotenv

from blockchain.contract_spec import ContractSpec
from deployer.exceptions import VerificationError

load_dotenv()


class ContractVerifier:
    """
    Submits Hardhat build-info (standard JSON input) for verification

    Runs after a CONFIRMED deployment; failures never touch the result.
    """

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str] = None,
        poll_interval: float = 5,
        max_attempts: int = 12
    ):
        """
        Initialize Contract Verifier

        Args:
            api_url: Explorer API endpoint
            api_key: Explorer API key (default ETHERSCAN_API_KEY)
            poll_interval: Seconds between status checks
            max_attempts: Status checks before giving up
        """
        self.api_url = api_url
        self.api_key = api_key or os.getenv('ETHERSCAN_API_KEY')
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

        if not self.api_key:
            raise VerificationError("ETHERSCAN_API_KEY is not set")

    async def verify(self, contract_spec: ContractSpec, contract_address: str) -> str:
        """
        Verify a deployed contract

        Args:
            contract_spec: Spec the contract was deployed from
            contract_address: Deployed address

        Returns:
            Final explorer status message

        Raises:
            VerificationError: Submission rejected or verification failed
        """
        logger.info(f"Verifying {contract_spec.name} at {contract_address}...")

        payload = self.build_payload(contract_spec, contract_address)

        timeout = aiohttp.ClientTimeout(total=30)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            submitted = await self._call(session, 'post', data=payload)
            if submitted.get('status') != '1':
                message = submitted.get('result', '')
                if 'already verified' in message.lower():
                    logger.info(f"{contract_spec.name} is already verified")
                    return message
                raise VerificationError(f"Explorer rejected verification: {message}")

            guid = submitted['result']
            logger.debug(f"Verification submitted, guid {guid}")
            return await self._wait_for_status(session, guid)

    def build_payload(self, contract_spec: ContractSpec, contract_address: str) -> Dict[str, str]:
        build_info = self._load_build_info(contract_spec)

        return {
            'apikey': self.api_key,
            'module': 'contract',
            'action': 'verifysourcecode',
            'contractaddress': contract_address,
            'sourceCode': json.dumps(build_info['input']),
            'codeformat': 'solidity-standard-json-input',
            'contractname': contract_spec.fully_qualified_name,
            'compilerversion': f"v{build_info['solcLongVersion']}",
            # Etherscan's spelling
            'constructorArguements': encode_constructor_args(contract_spec),
        }

    async def _wait_for_status(self, session: aiohttp.ClientSession, guid: str) -> str:
        params = {
            'apikey': self.api_key,
            'module': 'contract',
            'action': 'checkverifystatus',
            'guid': guid,
        }

        for attempt in range(self.max_attempts):
            await asyncio.sleep(self.poll_interval)

            response = await self._call(session, 'get', params=params)
            message = response.get('result', '')

            if 'pending' in message.lower():
                logger.debug(f"Verification pending ({attempt + 1}/{self.max_attempts})")
                continue

            if response.get('status') == '1' or 'already verified' in message.lower():
                logger.success(f"Contract verified: {message}")
                return message

            raise VerificationError(f"Verification failed: {message}")

        raise VerificationError(f"Verification still pending after {self.max_attempts} checks")

    async def _call(self, session: aiohttp.ClientSession, method: str, **kwargs) -> Dict:
        try:
            async with session.request(method, self.api_url, **kwargs) as response:
                response.raise_for_status()
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise VerificationError(f"Explorer request failed: {e}") from e

    @staticmethod
    def _load_build_info(contract_spec: ContractSpec) -> Dict:
        path = contract_spec.build_info_path
        if path is None or not path.exists():
            raise VerificationError(
                f"No build-info for {contract_spec.name}; recompile with Hardhat"
            )

        with open(path, 'r') as f:
            build_info = json.load(f)

        if 'input' not in build_info or 'solcLongVersion' not in build_info:
            raise VerificationError(f"Build-info {path} lacks compiler input/version")
        return build_info


def encode_constructor_args(contract_spec: ContractSpec) -> str:
    """ABI-encoded constructor arguments as bare hex (no 0x)"""
    constructor = contract_spec.constructor_abi()
    if not constructor or not constructor.get('inputs'):
        return ''

    types = [item['type'] for item in constructor['inputs']]
    return encode(types, list(contract_spec.constructor_args)).hex()

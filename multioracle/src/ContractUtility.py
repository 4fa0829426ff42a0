"""ContractUtility: AsyncWeb3 initialization and aggregator contract handles."""

import os

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract import AsyncContract

# Read-only subset of the AggregatorV3 interface.
AGGREGATOR_V3_ABI: list[dict] = [
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "description",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint80", "name": "_roundId", "type": "uint80"}],
        "name": "getRoundData",
        "outputs": [
            {"internalType": "uint80", "name": "roundId", "type": "uint80"},
            {"internalType": "int256", "name": "answer", "type": "int256"},
            {"internalType": "uint256", "name": "startedAt", "type": "uint256"},
            {"internalType": "uint256", "name": "updatedAt", "type": "uint256"},
            {"internalType": "uint80", "name": "answeredInRound", "type": "uint80"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "latestRoundData",
        "outputs": [
            {"internalType": "uint80", "name": "roundId", "type": "uint80"},
            {"internalType": "int256", "name": "answer", "type": "int256"},
            {"internalType": "uint256", "name": "startedAt", "type": "uint256"},
            {"internalType": "uint256", "name": "updatedAt", "type": "uint256"},
            {"internalType": "uint80", "name": "answeredInRound", "type": "uint80"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


class ContractUtility:
    """Utility for Web3 connection and aggregator contract handles.

    :ivar network: Network RPC URL.
    :ivar request_timeout: Upper bound in seconds for one RPC request.
    :ivar w3: AsyncWeb3 instance connected over HTTP.
    """

    NETWORKS = {
        "hyperevm": "https://rpc.hyperliquid.xyz/evm",
        "hyperevm-testnet": "https://rpc.hyperliquid-testnet.xyz/evm",
        "localnet": "http://localhost:8545",
    }

    DEFAULT_REQUEST_TIMEOUT = 10.0

    def __init__(self, network_name: str, request_timeout: float | None = None) -> None:
        """Initialize the contract utility.

        :param network_name: Name of a known network, or an RPC URL.
        :param request_timeout: RPC request timeout in seconds. Keep it no
            larger than the oracle query timeout (default: 10).
        """
        # RPC_URL env var overrides the default for the network
        self.network = os.environ.get("RPC_URL") or self.NETWORKS.get(
            network_name, network_name
        )
        self.request_timeout = request_timeout or self.DEFAULT_REQUEST_TIMEOUT
        self.w3 = AsyncWeb3(
            AsyncHTTPProvider(
                self.network,
                request_kwargs={
                    "timeout": aiohttp.ClientTimeout(total=self.request_timeout)
                },
            )
        )

    def aggregator_contract(self, address: str) -> AsyncContract:
        """Get an AggregatorV3 contract handle.

        :param address: Feed contract address (any case).
        :returns: Contract bound to this utility's AsyncWeb3 instance.
        """
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address),
            abi=AGGREGATOR_V3_ABI,
        )

"""Token addresses used across pool tests.

Real mainnet addresses keep fixtures recognizable; decimals are metadata
only and never scale amounts inside the engine.
"""

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"

# Never part of any test pool
OUTSIDER = "0x" + "ee" * 20

TOKEN_DECIMALS = {WETH: 18, USDC: 6, USDT: 6, DAI: 18}

from __future__ import annotations

import time
from types import SimpleNamespace

import pytest
from web3 import Web3

from conftest import CALLER, DAI, SWAP_CONTRACT, USDC, WETH
from stableswap.clients.uniswap_v2.allowance import AllowanceClient, AllowanceError
from stableswap.clients.uniswap_v2.pair import PairState, compute_pair_address, sort_tokens
from stableswap.clients.uniswap_v2.quote import QuoteError, RouterQuoter
from stableswap.clients.uniswap_v2.rpc import RPC, RPCError
from stableswap.clients.uniswap_v2.slippage import SlippageError, calculate_min_out, widened_slippage
from stableswap.clients.uniswap_v2.swap_contract import SWAP_EXECUTED_SIGNATURE, SwapContract
from stableswap.models.chain import UNISWAP_V2_INIT_CODE_HASH

MAINNET_FACTORY = "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"


def test_compute_pair_address_matches_mainnet_pairs():
    usdc_weth = compute_pair_address(MAINNET_FACTORY, UNISWAP_V2_INIT_CODE_HASH, WETH, USDC)
    dai_weth = compute_pair_address(MAINNET_FACTORY, UNISWAP_V2_INIT_CODE_HASH, DAI, WETH)

    assert usdc_weth == "0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc"
    assert dai_weth == "0xA478c2975Ab1Ea89e8196811F51A7B7Ade33eB11"
    # argument order does not matter
    assert compute_pair_address(MAINNET_FACTORY, UNISWAP_V2_INIT_CODE_HASH, USDC, WETH) == usdc_weth


def test_sort_tokens_orders_by_address_and_rejects_identical():
    assert sort_tokens(WETH, USDC) == (USDC, WETH)
    with pytest.raises(ValueError):
        sort_tokens(USDC, USDC.lower())


def test_pair_state_matches_reserves_by_address():
    state = PairState(pair="0xpair", token0=WETH, token1=USDC, reserve0=10, reserve1=25_000, block_timestamp_last=0)
    assert state.reserves_for(WETH, USDC) == (10, 25_000)

    flipped = PairState(pair="0xpair", token0=USDC, token1=WETH, reserve0=25_000, reserve1=10, block_timestamp_last=0)
    assert flipped.reserves_for(WETH.lower(), USDC.lower()) == (10, 25_000)
    assert flipped.reserves_for(WETH, DAI) is None


def test_calculate_min_out_floors():
    assert calculate_min_out(1_000, 100) == 990
    assert calculate_min_out(999, 100) == 989
    assert calculate_min_out(40_000_000_000_000_000, 200) == 39_200_000_000_000_000
    with pytest.raises(SlippageError):
        calculate_min_out(1_000, 10_000)
    with pytest.raises(SlippageError):
        calculate_min_out(-1, 100)


def test_widened_slippage_is_strictly_wider_and_capped():
    assert widened_slippage(100, 2) == 200
    assert widened_slippage(6_000, 2) == 9_999
    with pytest.raises(SlippageError):
        widened_slippage(9_999, 2)


@pytest.mark.asyncio
async def test_rpc_read_timeout_becomes_rpc_error():
    rpc = RPC(w3=SimpleNamespace(), timeout_seconds=0.05)

    with pytest.raises(RPCError, match="timed out"):
        await rpc.read(time.sleep, 0.5, label="slow_call")


@pytest.mark.asyncio
async def test_rpc_read_wraps_provider_errors():
    rpc = RPC(w3=SimpleNamespace(), timeout_seconds=1)

    def _boom():
        raise ConnectionError("node down")

    with pytest.raises(RPCError, match="node down"):
        await rpc.read(_boom, label="boom")
    assert await rpc.read(lambda: 7) == 7


def test_rpc_requires_url_or_web3():
    with pytest.raises(RPCError):
        RPC()


class _RaisingRPC:
    async def read(self, *_args, **_kwargs):
        raise RPCError("execution reverted")

    def contract(self, address, abi):
        return Web3().eth.contract(address=Web3.to_checksum_address(address), abi=abi)


@pytest.mark.asyncio
async def test_router_quoter_maps_rpc_errors():
    quoter = RouterQuoter(_RaisingRPC())
    with pytest.raises(QuoteError):
        await quoter.quote_exact_in("0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D", 100, [USDC, WETH])


class _StaticRPC(_RaisingRPC):
    def __init__(self, result):
        self.result = result

    async def read(self, *_args, **_kwargs):
        return self.result


@pytest.mark.asyncio
async def test_router_quoter_returns_last_amount_and_rejects_zero():
    assert await RouterQuoter(_StaticRPC([100, 42])).quote_exact_in(
        "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D", 100, [USDC, WETH]
    ) == 42
    with pytest.raises(QuoteError):
        await RouterQuoter(_StaticRPC([100, 0])).quote_exact_in(
            "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D", 100, [USDC, WETH]
        )
    with pytest.raises(QuoteError):
        await RouterQuoter(_StaticRPC([])).get_amounts_out("0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D", 100, [USDC, WETH])


def test_build_approve_tx_uses_exact_amount():
    client = AllowanceClient(RPC(w3=Web3()), chain_id=1)
    tx = client.build_approve_tx(USDC, CALLER, SWAP_CONTRACT, 100_000_000)

    assert tx["to"] == USDC
    assert tx["from"] == CALLER
    assert tx["chainId"] == 1
    assert tx["data"].startswith("0x095ea7b3")
    assert tx["data"].endswith(format(100_000_000, "064x"))
    with pytest.raises(AllowanceError):
        client.build_approve_tx(USDC, CALLER, SWAP_CONTRACT, 0)


@pytest.mark.asyncio
async def test_get_allowance_maps_rpc_errors():
    with pytest.raises(AllowanceError):
        await AllowanceClient(_RaisingRPC()).get_allowance(USDC, CALLER, SWAP_CONTRACT)


def test_swap_contract_builds_calldata_and_decodes_completion_event():
    w3 = Web3()
    contract = SwapContract(RPC(w3=w3), SWAP_CONTRACT, chain_id=1)
    tx = contract.build_swap_tx(CALLER, USDC, 100_000_000, [[USDC, WETH]], 39_600_000_000_000_000, 1_700_001_200)

    selector = Web3.keccak(text="swapStableToETHBest(address,uint256,address[][],uint256,uint256)")[:4].hex()
    assert tx["data"].lower().replace("0x", "").startswith(selector.replace("0x", ""))
    assert tx["to"] == SWAP_CONTRACT
    assert tx["value"] == 0

    topic = Web3.keccak(text=SWAP_EXECUTED_SIGNATURE)
    logs = [
        {"address": USDC, "topics": [topic], "data": w3.codec.encode(["uint256", "uint256"], [1, 2])},
        {"address": SWAP_CONTRACT.lower(), "topics": [topic], "data": w3.codec.encode(["uint256", "uint256"], [100_000_000, 39_900_000_000_000_000])},
    ]
    assert contract.realized_output(logs) == 39_900_000_000_000_000
    assert contract.realized_output([]) is None


def test_malformed_completion_event_yields_unknown_output():
    contract = SwapContract(RPC(w3=Web3()), SWAP_CONTRACT, chain_id=1)
    topic = Web3.keccak(text=SWAP_EXECUTED_SIGNATURE)
    logs = [{"address": SWAP_CONTRACT, "topics": [topic], "data": b"\x01"}]

    assert contract.realized_output(logs) is None

"""ABI encoding of confidential rebalancing payloads."""

from __future__ import annotations

from eth_abi import decode, encode

from ...domain import RebalancingInput, RebalancingResult

INPUT_TYPES = ["uint64[]", "int64[]", "int32[]", "uint8[]", "uint8[]", "uint8"]
RESULT_TYPES = [
    "bool",
    "uint8[]",
    "int16[]",
    "uint8[]",
    "uint8[]",
    "uint64[]",
    "uint64[]",
]


def encode_input(inputs: RebalancingInput) -> bytes:
    return encode(
        INPUT_TYPES,
        [
            list(inputs.balances),
            list(inputs.price_mantissas),
            list(inputs.price_exponents),
            list(inputs.weights),
            list(inputs.decimals),
            inputs.threshold_percent,
        ],
    )


def decode_input(payload: bytes) -> RebalancingInput:
    balances, mantissas, exponents, weights, decimals, threshold = decode(
        INPUT_TYPES, payload
    )
    return RebalancingInput(
        balances=tuple(balances),
        price_mantissas=tuple(mantissas),
        price_exponents=tuple(exponents),
        weights=tuple(weights),
        decimals=tuple(decimals),
        threshold_percent=threshold,
    )


def encode_result(result: RebalancingResult) -> bytes:
    return encode(
        RESULT_TYPES,
        [
            result.needs_rebalance,
            list(result.current_weights),
            list(result.drifts),
            list(result.swap_from),
            list(result.swap_to),
            list(result.swap_amounts),
            list(result.swap_min_outs),
        ],
    )


def decode_result(payload: bytes) -> RebalancingResult:
    needs, weights, drifts, swap_from, swap_to, amounts, min_outs = decode(
        RESULT_TYPES, payload
    )
    return RebalancingResult(
        needs_rebalance=needs,
        current_weights=tuple(weights),
        drifts=tuple(drifts),
        swap_from=tuple(swap_from),
        swap_to=tuple(swap_to),
        swap_amounts=tuple(amounts),
        swap_min_outs=tuple(min_outs),
    )

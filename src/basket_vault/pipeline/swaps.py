from __future__ import annotations

from collections.abc import Sequence

from ..domain import SwapInstruction
from ..errors import SwapFailed
from .context import PipelineContext


async def execute_swaps(
    ctx: PipelineContext, instructions: Sequence[SwapInstruction]
) -> list[int]:
    """Run instructions in order and return the realized outputs.

    Stops at the first failure; nothing is committed by this step.

    Raises:
        SwapFailed: If the executor rejects or fails any instruction
    """
    log = ctx.state.logger
    executor = ctx.services.swaps
    realized = []
    for n, instruction in enumerate(instructions, start=1):
        log.info(
            "Swap %d/%d: %d %s -> %s (min out %d)",
            n,
            len(instructions),
            instruction.amount_in,
            instruction.from_asset,
            instruction.to_asset,
            instruction.min_amount_out,
        )
        try:
            amount_out = await executor.execute(instruction)
        except SwapFailed:
            raise
        except Exception as exc:
            raise SwapFailed(
                f"{executor.name} failed {instruction.from_asset}->"
                f"{instruction.to_asset}: {exc}"
            ) from exc
        if amount_out < instruction.min_amount_out:
            raise SwapFailed(
                f"{executor.name} filled {amount_out} below minimum "
                f"{instruction.min_amount_out}"
            )
        realized.append(amount_out)
    return realized

"""Gas cost models."""

from swap_router.gas.base import (
    FixedGasModel,
    FixedGasModelFactory,
    GasCost,
    GasModel,
    GasModelFactory,
    L1FeeCalculator,
    L1GasCost,
    NativePricer,
)
from swap_router.gas.heuristic import (
    PoolNativePricer,
    RollupL1FeeCalculator,
    V2HeuristicGasModel,
    V2HeuristicGasModelFactory,
    V3HeuristicGasModel,
    V3HeuristicGasModelFactory,
)

__all__ = [
    "FixedGasModel",
    "FixedGasModelFactory",
    "GasCost",
    "GasModel",
    "GasModelFactory",
    "L1FeeCalculator",
    "L1GasCost",
    "NativePricer",
    "PoolNativePricer",
    "RollupL1FeeCalculator",
    "V2HeuristicGasModel",
    "V2HeuristicGasModelFactory",
    "V3HeuristicGasModel",
    "V3HeuristicGasModelFactory",
]

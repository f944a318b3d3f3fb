import enum
import typing

import attrs
import numpy as np
import numpy.typing as npt
from typing_extensions import TypeAlias

from equil.errors import ValidationError


__all__ = [
    "FluidPhase",
    "PhaseUsage",
    "Range",
    "FloatOrArray",
    "OneDimensionalGrid",
    "ThreeDimensionalGrid",
    "CellRange",
    "RegionPartition",
]

FloatOrArray = typing.Union[float, npt.NDArray[np.floating]]

OneDimensionalGrid: TypeAlias = np.ndarray[typing.Tuple[int], np.dtype[np.floating]]
"""1D array of per-cell floating point values"""
ThreeDimensionalGrid: TypeAlias = np.ndarray[
    typing.Tuple[int, int, int], np.dtype[np.floating]
]
"""3D (nx, ny, nz) array of floating point values"""

CellRange: TypeAlias = np.ndarray[typing.Tuple[int], np.dtype[np.integer]]
"""Ordered global cell indices of one equilibration region"""


class FluidPhase(enum.Enum):
    """Enum representing the phase of the fluid in the reservoir."""

    WATER = "water"
    OIL = "oil"
    GAS = "gas"


@attrs.frozen(slots=True)
class PhaseUsage:
    """
    Which fluid phases are active, and where each active phase sits
    in per-phase arrays.

    Active phases are laid out in the fixed order water, oil, gas.
    """

    water: bool = True
    oil: bool = True
    gas: bool = False

    def __attrs_post_init__(self) -> None:
        if not (self.water or self.oil or self.gas):
            raise ValidationError("At least one fluid phase must be active.")

    @property
    def active_phases(self) -> typing.Tuple[FluidPhase, ...]:
        """Active phases in array order."""
        flags = (
            (FluidPhase.WATER, self.water),
            (FluidPhase.OIL, self.oil),
            (FluidPhase.GAS, self.gas),
        )
        return tuple(phase for phase, used in flags if used)

    @property
    def num_phases(self) -> int:
        return len(self.active_phases)

    def is_active(self, phase: FluidPhase) -> bool:
        return phase in self.active_phases

    def position(self, phase: FluidPhase) -> int:
        """
        Position of `phase` in per-phase arrays.

        :param phase: An active fluid phase.
        :return: Zero-based position.
        :raises ValidationError: If the phase is not active.
        """
        try:
            return self.active_phases.index(phase)
        except ValueError:
            raise ValidationError(f"Phase '{phase.value}' is not active.") from None


@attrs.frozen(slots=True)
class Range:
    """
    Class representing minimum and maximum values.
    """

    min: float
    """Minimum value."""
    max: float
    """Maximum value."""

    def __attrs_post_init__(self) -> None:
        if self.min > self.max:
            raise ValidationError("Minimum value cannot be greater than maximum value.")

    def clip(self, value: float) -> float:
        """
        Clips the given value between the minimum and maximum values.

        :param value: The value to be clipped.
        :return: The clipped value.
        """
        return min(max(value, self.min), self.max)

    def __iter__(self) -> typing.Iterator[float]:
        yield self.min
        yield self.max

    def __contains__(self, item: float) -> bool:
        return self.min <= item <= self.max


@typing.runtime_checkable
class RegionPartition(typing.Protocol):
    """
    Protocol for a partition of grid cells into equilibration regions.

    Regions are identified by dense zero-based ids.
    """

    @property
    def num_regions(self) -> int:
        """Number of regions in the partition."""
        ...

    def cells(self, region: int) -> CellRange:
        """Global cell indices belonging to `region`, in grid order."""
        ...

"""Equilibration records and the deck-derived inputs of the initialization."""

import logging
import typing

import attrs
import numpy as np
import numpy.typing as npt

from equil.errors import (
    DataInconsistencyError,
    MissingInputError,
    UnsupportedConfigurationError,
    ValidationError,
)
from equil.grids import Grid
from equil.types import PhaseUsage

logger = logging.getLogger(__name__)

__all__ = [
    "Datum",
    "Contact",
    "EquilibrationRecord",
    "DepthTable",
    "EquilibrationDeck",
    "get_equilibration_records",
    "get_region_ids",
    "get_initial_water_saturation",
]

RawRecord = typing.Union[typing.Sequence[float], typing.Mapping[str, float]]

_RECORD_ITEMS = (
    "datum_depth",
    "datum_pressure",
    "water_oil_contact_depth",
    "water_oil_contact_capillary_pressure",
    "gas_oil_contact_depth",
    "gas_oil_contact_capillary_pressure",
    "live_oil_table_index",
    "wet_gas_table_index",
    "accuracy_target",
)


@attrs.frozen(slots=True)
class Datum:
    """Reference depth (m) and the pressure (Pa) prescribed there."""

    depth: float
    pressure: float


@attrs.frozen(slots=True)
class Contact:
    """Fluid contact depth (m) and the capillary pressure (Pa) at the contact."""

    depth: float
    capillary_pressure: float = 0.0


@attrs.frozen
class EquilibrationRecord:
    """
    Equilibration parameters of one region (one EQUIL record).

    Table indices are 1-based references into the RSVD/RVVD table lists;
    zero means no table.
    """

    datum: Datum
    """Datum depth and pressure."""
    water_oil_contact: Contact
    """Water-oil contact depth and oil-water capillary pressure there."""
    gas_oil_contact: Contact
    """Gas-oil contact depth and gas-oil capillary pressure there."""
    live_oil_table_index: int = attrs.field(default=0, validator=attrs.validators.ge(0))
    """1-based RSVD table index, 0 for none."""
    wet_gas_table_index: int = attrs.field(default=0, validator=attrs.validators.ge(0))
    """1-based RVVD table index, 0 for none."""
    accuracy_target: int = 0
    """
    Initialization accuracy target.

    Only 0 (integrate without fixed-point refinement) is supported;
    see `get_equilibration_records`.
    """

    @classmethod
    def from_items(cls, items: RawRecord) -> "EquilibrationRecord":
        """
        Build a record from raw EQUIL items.

        Sequences are read in EQUIL item order: datum depth, datum pressure,
        WOC depth, WOC capillary pressure, GOC depth, GOC capillary pressure,
        RSVD index, RVVD index, accuracy target. Mappings use the same names
        in snake case (e.g. "water_oil_contact_depth"). Missing trailing items
        default to zero; datum depth and pressure are required.

        :param items: Raw record values (SI units).
        :return: A new `EquilibrationRecord`.
        """
        if isinstance(items, typing.Mapping):
            unknown = set(items) - set(_RECORD_ITEMS)
            if unknown:
                raise ValidationError(f"Unknown equilibration items: {sorted(unknown)}")
            values = [items.get(name) for name in _RECORD_ITEMS]
        else:
            if len(items) > len(_RECORD_ITEMS):
                raise ValidationError(
                    f"An equilibration record has at most {len(_RECORD_ITEMS)} items, got {len(items)}."
                )
            values = list(items) + [None] * (len(_RECORD_ITEMS) - len(items))

        if values[0] is None or values[1] is None:
            raise MissingInputError(
                "Equilibration record must provide datum depth and datum pressure."
            )
        values = [0 if value is None else value for value in values]
        return cls(
            datum=Datum(depth=float(values[0]), pressure=float(values[1])),
            water_oil_contact=Contact(
                depth=float(values[2]), capillary_pressure=float(values[3])
            ),
            gas_oil_contact=Contact(
                depth=float(values[4]), capillary_pressure=float(values[5])
            ),
            live_oil_table_index=int(values[6]),
            wet_gas_table_index=int(values[7]),
            accuracy_target=int(values[8]),
        )

    def datum_in_oil_zone(self, phase_usage: PhaseUsage) -> bool:
        """
        Whether the datum lies between the gas-oil and water-oil contacts (inclusive).

        Only the contacts of active phases bound the oil zone.

        :param phase_usage: Active phases of the run.
        """
        if phase_usage.gas and self.datum.depth < self.gas_oil_contact.depth:
            return False
        if phase_usage.water and self.datum.depth > self.water_oil_contact.depth:
            return False
        return True


@attrs.frozen
class DepthTable:
    """
    A miscibility ratio (Rs or Rv) tabulated against depth.

    Linear interpolation, held constant beyond the end points, so values
    never leave the tabulated range.
    """

    depths: npt.NDArray[np.floating] = attrs.field(
        converter=lambda value: np.asarray(value, dtype=np.float64)
    )
    """Depths (m), strictly increasing."""
    values: npt.NDArray[np.floating] = attrs.field(
        converter=lambda value: np.asarray(value, dtype=np.float64)
    )
    """Ratio values at `depths`."""

    def __attrs_post_init__(self) -> None:
        if self.depths.ndim != 1 or self.depths.shape != self.values.shape:
            raise DataInconsistencyError(
                f"Depth and value columns must be one-dimensional with the same length. "
                f"Got {self.depths.shape} vs {self.values.shape}"
            )
        if self.depths.size < 1:
            raise ValidationError("A depth table needs at least one row.")
        if np.any(np.diff(self.depths) <= 0):
            raise ValidationError("Table depths must be strictly increasing.")
        if np.any(self.values < 0):
            raise ValidationError("Miscibility ratios must be non-negative.")

    def __call__(self, depth: float) -> float:
        return float(np.interp(depth, self.depths, self.values))


def _optional_array(dtype):
    def convert(value):
        if value is None:
            return None
        return np.asarray(value, dtype=dtype)

    return convert


@attrs.frozen
class EquilibrationDeck:
    """
    The deck data the equilibration consumes, already parsed.

    Per-cell properties (`eqlnum`, `swatinit`) are given per deck cell and
    are mapped to grid cells through the grid's `global_cell`.
    """

    equil: typing.Sequence[RawRecord] = attrs.field(factory=tuple, converter=tuple)
    """Raw EQUIL records, one per equilibration region."""
    eqlnum: typing.Optional[npt.NDArray[np.integer]] = attrs.field(
        default=None, converter=_optional_array(np.int64)
    )
    """1-based equilibration region number per deck cell."""
    swatinit: typing.Optional[npt.NDArray[np.floating]] = attrs.field(
        default=None, converter=_optional_array(np.float64)
    )
    """Prescribed initial water saturation per deck cell."""
    rsvd_tables: typing.Sequence[DepthTable] = attrs.field(
        factory=tuple, converter=tuple
    )
    """Rs versus depth tables."""
    rvvd_tables: typing.Sequence[DepthTable] = attrs.field(
        factory=tuple, converter=tuple
    )
    """Rv versus depth tables."""
    disgas: bool = False
    """Whether dissolved gas (live oil) is enabled."""
    vapoil: bool = False
    """Whether vaporized oil (wet gas) is enabled."""


def _restrict_to_grid(
    keyword: str, deck_values: npt.NDArray, grid: Grid
) -> npt.NDArray:
    """Map a per-deck-cell property onto the cells of `grid`."""
    global_cell = grid.global_cell
    if global_cell is None:
        if deck_values.size != grid.num_cells:
            raise DataInconsistencyError(
                f"{keyword} has {deck_values.size} values for a grid of {grid.num_cells} cells."
            )
        return deck_values.copy()

    if grid.num_cells and deck_values.size <= int(np.max(global_cell)):
        raise DataInconsistencyError(
            f"{keyword} has {deck_values.size} values but the grid references "
            f"deck cell {int(np.max(global_cell))}."
        )
    return deck_values[global_cell]


def get_equilibration_records(
    deck: EquilibrationDeck,
) -> typing.List[EquilibrationRecord]:
    """
    Extract the equilibration records, one per region, in region order.

    :param deck: Deck data.
    :return: List of records; index `r` belongs to zero-based region `r`.
    :raises MissingInputError: If the deck has no equilibration data.
    :raises UnsupportedConfigurationError: If a record asks for a non-zero accuracy target.
    """
    if not deck.equil:
        raise MissingInputError("Deck does not provide equilibration data.")

    records = []
    for region, items in enumerate(deck.equil):
        record = (
            items
            if isinstance(items, EquilibrationRecord)
            else EquilibrationRecord.from_items(items)
        )
        if record.accuracy_target != 0:
            raise UnsupportedConfigurationError(
                f"Equilibration region {region + 1}: only accuracy target 0 is supported, "
                f"got {record.accuracy_target}."
            )
        records.append(record)

    logger.debug(f"Read {len(records)} equilibration record(s)")
    return records


def get_region_ids(deck: EquilibrationDeck, grid: Grid) -> npt.NDArray[np.int64]:
    """
    Zero-based equilibration region id of every grid cell.

    Without an explicit region property, or with one that is zero
    everywhere, every cell belongs to region 0.

    :param deck: Deck data.
    :param grid: Grid whose cells are mapped.
    :return: One region id per grid cell.
    """
    if deck.eqlnum is None or not np.any(deck.eqlnum):
        return np.zeros(grid.num_cells, dtype=np.int64)

    region_ids = _restrict_to_grid("EQLNUM", deck.eqlnum, grid) - 1
    if region_ids.size and region_ids.min() < 0:
        raise ValidationError("EQLNUM values must be positive.")
    return region_ids.astype(np.int64, copy=False)


def get_initial_water_saturation(
    deck: EquilibrationDeck, grid: Grid
) -> typing.Optional[npt.NDArray[np.floating]]:
    """
    Prescribed initial water saturation of every grid cell, if the deck has one.

    :param deck: Deck data.
    :param grid: Grid whose cells are mapped.
    :return: One saturation per grid cell, or None.
    """
    if deck.swatinit is None:
        return None

    swatinit = _restrict_to_grid("SWATINIT", deck.swatinit, grid)
    if np.any((swatinit < 0.0) | (swatinit > 1.0)):
        raise ValidationError("SWATINIT values must lie within [0, 1].")
    return swatinit

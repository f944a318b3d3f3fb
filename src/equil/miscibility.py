"""
Dissolved gas-oil (Rs) and vaporized oil-gas (Rv) ratio functions.

Every function is called as `function(depth, pressure, temperature, saturation)`
where `saturation` is the saturation of the complementary phase: gas for Rs,
oil for Rv. Where that phase is present the fluid is saturated, and the
saturated PVT value at the given pressure is returned.
"""

import logging
import typing

import attrs

from equil.errors import MissingInputError, UnsupportedConfigurationError
from equil.properties.base import FluidProperties
from equil.records import DepthTable, EquilibrationDeck, EquilibrationRecord

logger = logging.getLogger(__name__)

__all__ = [
    "MiscibilityFunction",
    "NoMixing",
    "RsVD",
    "RvVD",
    "RsSatAtContact",
    "RvSatAtContact",
    "build_rs_functions",
    "build_rv_functions",
]


class MiscibilityFunction(typing.Protocol):
    def __call__(
        self,
        depth: float,
        pressure: float,
        temperature: float,
        saturation: float = 0.0,
    ) -> float: ...


@attrs.frozen
class NoMixing:
    """No dissolution or vaporization. The ratio is zero everywhere."""

    def __call__(
        self,
        depth: float,
        pressure: float,
        temperature: float,
        saturation: float = 0.0,
    ) -> float:
        return 0.0


@attrs.frozen
class RsVD:
    """Dissolved gas-oil ratio tabulated against depth."""

    props: FluidProperties
    cell: int
    """Cell whose PVT region supplies the saturated ratio."""
    table: DepthTable

    def __call__(
        self,
        depth: float,
        pressure: float,
        temperature: float,
        saturation: float = 0.0,
    ) -> float:
        if saturation > 0.0:
            return self.props.saturated_rs(self.cell, pressure, temperature)
        return self.table(depth)


@attrs.frozen
class RvVD:
    """Vaporized oil-gas ratio tabulated against depth."""

    props: FluidProperties
    cell: int
    table: DepthTable

    def __call__(
        self,
        depth: float,
        pressure: float,
        temperature: float,
        saturation: float = 0.0,
    ) -> float:
        if saturation > 0.0:
            return self.props.saturated_rv(self.cell, pressure, temperature)
        return self.table(depth)


@attrs.frozen
class RsSatAtContact:
    """
    Dissolved gas-oil ratio equal to the saturated value at the
    gas-oil contact pressure, constant with depth.
    """

    props: FluidProperties
    cell: int
    contact_pressure: float
    """Oil pressure at the gas-oil contact (Pa)."""
    temperature: float
    """Temperature (K) at which the contact value is evaluated."""
    value: float = attrs.field(init=False)
    """Saturated ratio at contact conditions."""

    @value.default
    def _compute_value(self) -> float:
        return self.props.saturated_rs(
            self.cell, self.contact_pressure, self.temperature
        )

    def __call__(
        self,
        depth: float,
        pressure: float,
        temperature: float,
        saturation: float = 0.0,
    ) -> float:
        if saturation > 0.0:
            return self.props.saturated_rs(self.cell, pressure, temperature)
        return self.value


@attrs.frozen
class RvSatAtContact:
    """
    Vaporized oil-gas ratio equal to the saturated value at the
    gas-oil contact pressure, constant with depth.
    """

    props: FluidProperties
    cell: int
    contact_pressure: float
    """Gas pressure at the gas-oil contact (Pa)."""
    temperature: float
    value: float = attrs.field(init=False)

    @value.default
    def _compute_value(self) -> float:
        return self.props.saturated_rv(
            self.cell, self.contact_pressure, self.temperature
        )

    def __call__(
        self,
        depth: float,
        pressure: float,
        temperature: float,
        saturation: float = 0.0,
    ) -> float:
        if saturation > 0.0:
            return self.props.saturated_rv(self.cell, pressure, temperature)
        return self.value


def _select_table(
    keyword: str, tables: typing.Sequence[DepthTable], index: int
) -> DepthTable:
    if index > len(tables):
        raise MissingInputError(
            f"Cannot initialise: {keyword} table {index} not available."
        )
    return tables[index - 1]


def _check_datum_at_contact(
    keyword: str, region: int, record: EquilibrationRecord
) -> None:
    if record.gas_oil_contact.depth != record.datum.depth:
        raise UnsupportedConfigurationError(
            f"Equilibration region {region + 1}: no {keyword} table given, so the "
            f"datum depth ({record.datum.depth}) must equal the gas-oil contact "
            f"depth ({record.gas_oil_contact.depth})."
        )


def build_rs_functions(
    deck: EquilibrationDeck,
    records: typing.Sequence[EquilibrationRecord],
    props: FluidProperties,
    representative_cells: typing.Sequence[int],
    temperature: float,
) -> typing.List[MiscibilityFunction]:
    """
    Select the dissolved gas-oil ratio function of every region.

    - Without dissolved gas enabled, every region gets `NoMixing`.
    - A positive table index selects that (1-based) RSVD table.
    - Index 0 means saturated at the gas-oil contact, which requires
      the datum to sit at the contact.

    :param deck: Deck data holding the feature flag and the RSVD tables.
    :param records: Equilibration records in region order.
    :param props: PVT property evaluator.
    :param representative_cells: Representative cell of each region.
    :param temperature: Temperature (K) for saturated values.
    :return: One function per region.
    """
    if not deck.disgas:
        return [NoMixing() for _ in records]

    functions: typing.List[MiscibilityFunction] = []
    for region, record in enumerate(records):
        cell = representative_cells[region]
        if record.live_oil_table_index > 0:
            table = _select_table("RSVD", deck.rsvd_tables, record.live_oil_table_index)
            functions.append(RsVD(props=props, cell=cell, table=table))
        else:
            _check_datum_at_contact("RSVD", region, record)
            functions.append(
                RsSatAtContact(
                    props=props,
                    cell=cell,
                    contact_pressure=record.datum.pressure,
                    temperature=temperature,
                )
            )
        logger.debug(
            f"Region {region}: Rs function {type(functions[-1]).__name__}"
        )
    return functions


def build_rv_functions(
    deck: EquilibrationDeck,
    records: typing.Sequence[EquilibrationRecord],
    props: FluidProperties,
    representative_cells: typing.Sequence[int],
    temperature: float,
) -> typing.List[MiscibilityFunction]:
    """
    Select the vaporized oil-gas ratio function of every region.

    Mirrors `build_rs_functions` with the vaporized oil flag and the RVVD
    tables. The saturated-at-contact value is taken at the gas pressure
    at the contact, the datum pressure plus the gas-oil capillary pressure.
    """
    if not deck.vapoil:
        return [NoMixing() for _ in records]

    functions: typing.List[MiscibilityFunction] = []
    for region, record in enumerate(records):
        cell = representative_cells[region]
        if record.wet_gas_table_index > 0:
            table = _select_table("RVVD", deck.rvvd_tables, record.wet_gas_table_index)
            functions.append(RvVD(props=props, cell=cell, table=table))
        else:
            _check_datum_at_contact("RVVD", region, record)
            functions.append(
                RvSatAtContact(
                    props=props,
                    cell=cell,
                    contact_pressure=record.datum.pressure
                    + record.gas_oil_contact.capillary_pressure,
                    temperature=temperature,
                )
            )
        logger.debug(
            f"Region {region}: Rv function {type(functions[-1]).__name__}"
        )
    return functions

import typing

import attrs

from equil.constants import Constants, c

__all__ = ["Config"]


@attrs.frozen
class Config:
    """Equilibration run configuration and parameters."""

    gravity: float = attrs.field(
        factory=lambda: c.ACCELERATION_DUE_TO_GRAVITY,
        validator=attrs.validators.gt(0),
    )
    """
    Magnitude of the acceleration due to gravity (m/s²).

    Gravity always acts along the positive depth axis.
    """
    integration_steps: int = attrs.field(
        default=2000,
        validator=attrs.validators.and_(
            attrs.validators.ge(1), attrs.validators.le(100_000)
        ),
    )
    """Number of fixed Runge-Kutta steps taken on each leg of the hydrostatic integration."""
    temperature: float = attrs.field(
        factory=lambda: c.EQUILIBRATION_TEMPERATURE,
        validator=attrs.validators.gt(0),
    )
    """
    Reservoir temperature (K) used for every density and saturated ratio evaluation.

    This is a fixed modelling assumption, not the output of a thermal model.
    """
    saturation_tolerance: float = attrs.field(
        default=1e-6,
        validator=attrs.validators.and_(
            attrs.validators.gt(0), attrs.validators.le(1e-2)
        ),
    )
    """Absolute saturation tolerance used when inverting capillary pressure curves."""
    max_iterations: int = attrs.field(
        default=100,
        validator=attrs.validators.and_(
            attrs.validators.ge(1), attrs.validators.le(500)
        ),
    )
    """Maximum number of root-finder iterations per capillary pressure inversion."""
    constant_capillary_pressure_threshold: float = attrs.field(
        default=1e-9, validator=attrs.validators.ge(0)
    )
    """
    Capillary pressure curves whose end-point values differ by no more than this (Pa)
    are treated as constant, and saturations then follow a sharp contact.
    """
    max_workers: typing.Optional[int] = attrs.field(
        default=None,
        validator=attrs.validators.optional(attrs.validators.ge(1)),
    )
    """
    Number of worker threads used to equilibrate regions concurrently.

    `None` or 1 processes the regions one after the other.
    """
    constants: Constants = attrs.field(factory=Constants)
    """Physical and conversion constants used in the computation."""

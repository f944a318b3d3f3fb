"""Physical constants and unit conversion factors (SI base units)."""

from contextvars import ContextVar
import typing

import attrs


__all__ = ["Constant", "Constants", "c", "ConstantsContext", "get_constant"]


@attrs.frozen(slots=True)
class Constant:
    """A constant value with an optional description and unit."""

    value: typing.Any
    """The actual value of the constant."""

    description: typing.Optional[str] = None
    """Optional description of what this constant represents."""

    unit: typing.Optional[str] = None
    """Optional unit of measurement for this constant."""

    def __str__(self) -> str:
        return f"{self.value}{self.unit or ''}"


DEFAULT_CONSTANTS: typing.Dict[str, Constant] = {
    "ACCELERATION_DUE_TO_GRAVITY": Constant(
        value=9.80665,
        description="Standard acceleration due to gravity",
        unit="m/s²",
    ),
    "STANDARD_PRESSURE": Constant(
        value=101325.0, description="Standard atmospheric pressure", unit="Pa"
    ),
    "BAR_TO_PASCAL": Constant(
        value=1.0e5, description="Conversion factor from bar to pascal", unit="Pa/bar"
    ),
    "ATM_TO_PASCAL": Constant(
        value=101325.0,
        description="Conversion factor from atmosphere to pascal",
        unit="Pa/atm",
    ),
    "PSI_TO_PASCAL": Constant(
        value=6894.757293168361,
        description="Conversion factor from psi to pascal",
        unit="Pa/psi",
    ),
    "CELSIUS_TO_KELVIN": Constant(
        value=273.15, description="Offset from degrees Celsius to kelvin", unit="K"
    ),
    "EQUILIBRATION_TEMPERATURE": Constant(
        value=273.15 + 20.0,
        description="Fixed reservoir temperature assumed during equilibration (20°C)",
        unit="K",
    ),
    "FREE_WATER_CAPILLARY_PRESSURE": Constant(
        value=1.0e-8,
        description="Oil-water capillary pressure at or below which a cell is taken to be in the free water zone",
        unit="Pa",
    ),
}


class Constants:
    """
    Store of physical constants and conversion factors.

    Use attribute access for raw values and item access for the `Constant`
    record (value, description and unit).
    """

    __slots__ = ("_store",)

    def __init__(self, **overrides: typing.Any) -> None:
        """
        Initialize the store with the default constants.

        :param overrides: Constant values (raw or `Constant`) to use instead of the defaults.
        """
        store: typing.Dict[str, Constant] = dict(DEFAULT_CONSTANTS)
        for name, value in overrides.items():
            store[name] = value if isinstance(value, Constant) else Constant(value)
        object.__setattr__(self, "_store", store)

    def __getattr__(self, name: str) -> typing.Any:
        if name.startswith("_"):
            return object.__getattribute__(self, name)
        try:
            return self._store[name].value
        except KeyError:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            ) from None

    def __setattr__(self, name: str, value: typing.Any) -> None:
        self._store[name] = value if isinstance(value, Constant) else Constant(value)

    def __getitem__(self, name: str) -> Constant:
        return self._store[name]

    def __contains__(self, name: str) -> bool:
        return name in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(constants={len(self._store)})"

    def get(self, name: str, default: typing.Any = None) -> typing.Any:
        """
        Get a constant's value with a default fallback.

        :param name: Name of the constant
        :param default: Value returned if the constant does not exist
        :return: Value of the constant or default
        """
        constant = self._store.get(name)
        return default if constant is None else constant.value

    def get_constant(self, name: str) -> typing.Optional[Constant]:
        """Get the `Constant` record for `name`, or None."""
        return self._store.get(name)

    def __call__(self) -> "ConstantsContext":
        """
        Create a context manager that makes this instance the one
        served by the global proxy `equil.c` within its context.
        """
        return ConstantsContext(self)


_constants_context: ContextVar[Constants] = ContextVar(
    "constants_context", default=Constants()
)


class ConstantsContext:
    """Context manager for temporary global `Constants` overrides."""

    def __init__(self, constants: Constants) -> None:
        self._new_constants = constants
        self._token = None

    def __enter__(self) -> Constants:
        self._token = _constants_context.set(self._new_constants)
        return self._new_constants

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._token is not None:
            _constants_context.reset(self._token)


class _ConstantsProxy:
    """Proxy to the `Constants` instance of the current context."""

    @property
    def _constants(self) -> Constants:
        return _constants_context.get()

    def __getattr__(self, name: str) -> typing.Any:
        return getattr(self._constants, name)

    def __getitem__(self, name: str) -> Constant:
        return self._constants[name]


c = _ConstantsProxy()
"""Global proxy to access physical constants and conversion factors."""


def get_constant(name: str) -> typing.Optional[Constant]:
    """
    Get a `Constant` record by name from the global constants.

    :param name: Name of the constant
    :return: `Constant` or None if not found
    """
    return c._constants.get_constant(name)

from collections import defaultdict
from dataclasses import astuple
from dataclasses import dataclass
from dataclasses import field
from dataclasses import is_dataclass
from pathlib import Path
import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from types import UnionType
from typing import get_args
from typing import get_origin
from typing import get_type_hints
from typing import Type
from typing import TypeVar
from warnings import warn

T = TypeVar("T")


def _is_dataclass(_type: Type[T], /) -> bool:
    """Remove ``TypeGuard`` from is_dataclass.

    see: https://github.com/python/mypy/issues/14941

    """
    return is_dataclass(_type)


# map of types that maybe converted to match the expected type
_compat_types: defaultdict[type, set[type]] = defaultdict(set, {int: {float}})


def assert_t(key: str, value, *types: type):
    """Assert value is of one of the types

    ``key`` is the TOML configuration key the value is associated to.
    It is used to generate a meaningful error message.

    """
    assert len(types) > 0, "need at least one type to assert"
    msg = f"{key}: type({value!r}) "
    if len(types) > 1:
        msg += f"∉ {{{', '.join(map(str, types))}}}"
    else:
        msg += f"!= {types[0]}"

    try:
        assert isinstance(value, types), msg
    except AssertionError:
        # NOTE: check if types are compatible
        if not _compat_types[type(value)].intersection(types):
            raise


def validate_types(key: str, value, type_: type):
    """Validate a setting against its annotation

    Settings are numbers or optional numbers, e.g. ``float`` or
    ``int | None``.  Any other annotation is reported with a warning
    and left unchecked.

    """
    match get_origin(type_):
        case type() as origin_t if issubclass(origin_t, UnionType):
            assert_t(key, value, *get_args(type_))
        case None:
            assert_t(key, value, type_)
        case _:
            warn(f"{key}: unsupported type {type_}, cannot validate")


@dataclass(frozen=True)
class _Validate:
    def __post_init__(self):
        for (key, type_), val in zip(
            get_type_hints(self).items(), astuple(self)
        ):
            validate_types(key, val, type_)


@dataclass(frozen=True)
class RFConf(_Validate):
    """Settings for the normalization of receptive fields."""

    sigma_major_limit: float = 4.0
    """Truncation radius. Samples whose distance from the RF centre,
    in units of the standard deviations along both axes, is below
    sigma_major_limit * sigma_major are taken to hold all of the
    Gaussian's mass. The default of 4 covers 99.994% of it.

    """

    growth_factor: float = 1.5
    """Each expansion of the support grid spans
    [-growth_factor * field_range, growth_factor * field_range], where
    field_range is the span of the previous grid. Must exceed 0.5 for
    the grid to grow.

    """

    nr_threads: int | None = None
    """The number of threads used to compute the normalization
    constants of a batch of receptive fields. None leaves the choice to
    the executor, 1 computes them one by one in the calling thread.

    """

    def __post_init__(self):
        super().__post_init__()
        if not self.sigma_major_limit > 0:
            raise ValueError("sigma_major_limit: must be positive")
        if not self.growth_factor > 0.5:
            raise ValueError("growth_factor: must exceed 0.5")
        if self.nr_threads is not None and self.nr_threads < 1:
            raise ValueError("nr_threads: must be at least 1")


@dataclass(frozen=True)
class GridConf(_Validate):
    """Default sampling grid, see ``rfmodel.utils.make_grid``."""

    field_range: float = 20.0
    """Half-width of the grid (degrees of visual angle)."""

    sample_rate: float = 0.2
    """Distance between neighbouring samples (degrees)."""


@dataclass(frozen=True)
class Conf:
    rf: RFConf = field(default_factory=RFConf)
    grid: GridConf = field(default_factory=GridConf)

    def __post_init__(self):  # noqa: D105
        for key, field_t in get_type_hints(self).items():
            value = getattr(self, key)
            if _is_dataclass(field_t) and isinstance(value, dict):
                # NOTE: have to do it like this since inherited
                # dataclasses are frozen
                super().__setattr__(key, field_t(**value))


def normalize_none_values(val):
    if isinstance(val, dict):
        return {k: normalize_none_values(v) for k, v in val.items()}
    elif isinstance(val, str) and val.strip().lower() == "none":
        return None
    else:
        return val


def read_conf(path: str | Path | None):
    if path is None:
        data = {"tool": {"rfmodel": {"rf": {}, "grid": {}}}}
    else:
        data_raw = tomllib.loads(Path(path).read_text())
        data = normalize_none_values(data_raw)

    conf = data.get("tool", {}).get("rfmodel", {})
    if not conf:
        match data:
            case {"tool": {"rfmodel": dict(), **_rest1}, **_rest2}:
                raise KeyError("tool.rfmodel: empty section in config file")
            case {"tool": dict(), **_rest}:
                raise KeyError(
                    "tool.rfmodel: section for rfmodel missing in config file"
                )
            case _:
                raise KeyError(
                    "tool: top-level section missing in config file"
                )
    return Conf(**conf)

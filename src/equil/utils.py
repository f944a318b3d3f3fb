import gzip
import lzma
from os import PathLike
from pathlib import Path
import pickle
import typing

import numba
import numpy as np
import numpy.typing as npt


__all__ = ["scatter", "save_as_pickle", "load_from_pickle"]


@numba.njit(cache=True)
def _scatter(
    source: npt.NDArray, cells: npt.NDArray, destination: npt.NDArray
) -> None:
    for local_index in range(cells.shape[0]):
        destination[cells[local_index]] = source[local_index]


def scatter(
    source: npt.NDArray,
    cells: npt.NDArray,
    destination: npt.NDArray,
) -> None:
    """
    Copy per-region values into a global per-cell array (in-place).

    `source[i]` lands in `destination[cells[i]]`.

    :param source: 1D array of region values, one per cell in `cells`.
    :param cells: 1D array of global cell indices.
    :param destination: 1D global array to write into.
    """
    if source.shape[0] != cells.shape[0]:
        raise ValueError(
            f"Cannot scatter {source.shape[0]} values onto {cells.shape[0]} cells."
        )
    _scatter(
        np.ascontiguousarray(source, dtype=destination.dtype),
        np.ascontiguousarray(cells, dtype=np.int64),
        destination,
    )


def save_as_pickle(
    obj: typing.Any,
    filepath: PathLike,
    exist_ok: bool = False,
    compression: typing.Optional[typing.Literal["gzip", "lzma"]] = "gzip",
    compression_level: int = 6,
) -> Path:
    """Saves an object as a pickle file with optional compression.

    :param obj: The object to be saved.
    :param filepath: The path to the pickle file.
    :param exist_ok: If True, will overwrite existing files.
    :param compression: Compression method - "gzip", "lzma", or None
    :param compression_level: Compression level (1-9 for gzip, 0-9 for lzma)
    :return: The path actually written, with the suffix matching `compression`.
    """
    filepath = Path(filepath)
    if compression == "gzip":
        target_suffix = ".pkl.gz"
    elif compression == "lzma":
        target_suffix = ".pkl.xz"
    else:
        target_suffix = ".pkl"

    if filepath.suffix.split(".")[-1] not in ["pkl", "gz", "xz"]:
        filepath = filepath.with_suffix(target_suffix)
    elif not str(filepath).endswith(target_suffix):
        filepath = Path(str(filepath).replace(".pkl", target_suffix))

    if not exist_ok and filepath.exists():
        raise FileExistsError(f"File {filepath} already exists.")

    filepath.parent.mkdir(parents=True, exist_ok=True, mode=0o755)
    if compression == "gzip":
        with gzip.open(filepath, "wb", compresslevel=compression_level) as f:
            pickle.dump(obj, f, protocol=pickle.HIGHEST_PROTOCOL)
    elif compression == "lzma":
        with lzma.open(filepath, "wb", preset=compression_level) as f:
            pickle.dump(obj, f, protocol=pickle.HIGHEST_PROTOCOL)
    else:
        with filepath.open("wb") as f:
            pickle.dump(obj, f, protocol=pickle.HIGHEST_PROTOCOL)
    return filepath


def load_from_pickle(filepath: PathLike) -> typing.Any:
    """Loads an object from a pickle file, detecting compression from the suffix.

    :param filepath: The path to the pickle file.
    :return: The loaded object.
    """
    filepath = Path(filepath)
    if str(filepath).endswith(".gz"):
        with gzip.open(filepath, "rb") as f:
            return pickle.load(f)
    elif str(filepath).endswith(".xz"):
        with lzma.open(filepath, "rb") as f:
            return pickle.load(f)
    with filepath.open("rb") as f:
        return pickle.load(f)

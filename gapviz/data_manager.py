"""Data manager for loading the dashboard datasets.

This module reads the two demographic CSV tables and the world boundary
topology.  Every dataset is loaded once and memoised; a failed load is
logged and degrades to empty data so the dependent view stays inert
instead of crashing the app.  Downloaded topologies are persisted to a
writable cache directory so the globe can start without network access
on later runs.
"""

import json
import os
import tempfile
import logging
from pathlib import Path
from typing import Optional
from functools import lru_cache

import pandas as pd
import requests

from .config import DEFAULT_SEP, GENDER_SOURCE, LIFE_SOURCE, WORLD_ATLAS_SOURCE

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Cache setup
# ---------------------------------------------------------------------------
# Bump to ignore topologies cached by an older layout of this module.
CACHE_VERSION: str = "v1"


def _resolve_cache_dir() -> Path:
    """Select a writable directory for caching.

    The lookup order is:

    1. The ``DATA_CACHE_DIR`` environment variable, if set.
    2. A ``data`` folder at the repository root.
    3. A temporary directory in ``/tmp``.

    Each candidate path is tested for writability by attempting to
    create and delete a sentinel file.  The first path that succeeds
    is returned.
    """
    candidates: list[Path] = []
    env = os.getenv("DATA_CACHE_DIR")
    if env:
        candidates.append(Path(env).expanduser().resolve())

    candidates.append(Path(__file__).resolve().parent.parent / "data")
    candidates.append(Path(tempfile.gettempdir()) / "gapviz_cache")

    for path in candidates:
        try:
            path.mkdir(parents=True, exist_ok=True)
            test_file = path / ".write_test"
            test_file.write_text("ok", encoding="utf-8")
            test_file.unlink()
            return path
        except OSError:
            continue

    fallback = Path(tempfile.gettempdir()) / "gapviz_cache"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def topology_cache_path(source: str) -> Path:
    """Cache file used for a remote topology ``source``."""
    name = Path(source.split("?", 1)[0]).stem or "topology"
    return _resolve_cache_dir() / f"{name}_{CACHE_VERSION}.json"


def _atomic_write_text(text: str, path: Path) -> None:
    """Write text atomically.

    The payload is first written to a temporary file in the same directory
    and then renamed to the final location, so an interrupted write never
    leaves a truncated cache behind.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


def _is_url(source: str | Path) -> bool:
    return str(source).lower().startswith(("http://", "https://"))


# ---------------------------------------------------------------------------
# CSV datasets
# ---------------------------------------------------------------------------


def read_dataset(source: str | Path, sep: str = DEFAULT_SEP) -> pd.DataFrame:
    """
    Read one delimited dataset, returning an empty frame on failure.

    Parameters
    ----------
    source : str or Path
        Path or URL of the CSV file.
    sep : str, optional
        Column delimiter; defaults to ``","``.

    Returns
    -------
    pd.DataFrame
        The rows as read, or an empty DataFrame if the file could not be
        loaded.  The failure is logged, never retried.
    """
    try:
        df = pd.read_csv(source, sep=sep)
    except (OSError, ValueError, pd.errors.ParserError) as exc:
        logger.error("Error loading dataset %s: %s", source, exc)
        return pd.DataFrame()

    logger.info("Loaded %s: %d rows, columns=%s", source, len(df), list(df.columns))
    return df


@lru_cache(maxsize=4)
def _load_csv(source: str, sep: str) -> pd.DataFrame:
    return read_dataset(source, sep=sep)


def load_gender_data(
    source: str | Path = GENDER_SOURCE, *, force_reload: bool = False
) -> pd.DataFrame:
    """Load the regional gender enrollment table used by the bar chart."""
    if force_reload:
        _load_csv.cache_clear()
    return _load_csv(str(source), DEFAULT_SEP).copy()


def load_life_data(
    source: str | Path = LIFE_SOURCE, *, force_reload: bool = False
) -> pd.DataFrame:
    """Load the region/decade indicator table used by the life path."""
    if force_reload:
        _load_csv.cache_clear()
    return _load_csv(str(source), DEFAULT_SEP).copy()


# ---------------------------------------------------------------------------
# World topology
# ---------------------------------------------------------------------------


def _fetch_topology(source: str) -> dict:
    cache_path = topology_cache_path(source)
    if cache_path.exists():
        logger.info("Loading topology from cache %s", cache_path)
        try:
            return json.loads(cache_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Error reading cached topology %s: %s; refetching", cache_path, exc)

    logger.info("Downloading world topology from %s", source)
    response = requests.get(source, timeout=30)
    response.raise_for_status()
    topology = response.json()

    try:
        _atomic_write_text(json.dumps(topology), cache_path)
        logger.info("Topology cached at %s", cache_path.name)
    except OSError as exc:
        logger.warning("Could not write topology cache: %s", exc)
    return topology


@lru_cache(maxsize=2)
def _load_topology(source: str) -> Optional[dict]:
    try:
        if _is_url(source):
            topology = _fetch_topology(source)
        else:
            topology = json.loads(Path(source).read_text(encoding="utf-8"))
    except (OSError, ValueError, requests.RequestException) as exc:
        logger.error("Error loading world map %s: %s", source, exc)
        return None

    if topology.get("type") != "Topology":
        logger.error("World map %s is not a TopoJSON topology", source)
        return None
    return topology


def load_world_topology(
    source: str | Path = WORLD_ATLAS_SOURCE, *, force_reload: bool = False
) -> Optional[dict]:
    """
    Load the country boundaries topology for the globe view.

    Parameters
    ----------
    source : str or Path, optional
        URL or local path of a TopoJSON file.  Remote files are cached in
        the directory picked by :func:`_resolve_cache_dir`.
    force_reload : bool, optional
        If ``True``, drop the in-memory copy and load again.

    Returns
    -------
    Optional[dict]
        The parsed topology, or ``None`` when it could not be loaded.
    """
    if force_reload:
        _load_topology.cache_clear()
    return _load_topology(str(source))

"""
Population sources — where the orchestrator gets each region's citizens.

Citizen generation happens elsewhere; a source only has to hand back the
citizens of a region (validated profiles or raw mappings) or raise
``RegionSourceMissing`` when it has none.

``JsonDirectorySource`` reads one ``<region>.json`` file per region, holding
either a list of citizens or an object with a ``humans``/``citizens`` list.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from civora.core.errors import RegionSourceMissing
from civora.core.schema import CitizenProfile

logger = logging.getLogger(__name__)

RawCitizen = CitizenProfile | Mapping[str, Any]


@runtime_checkable
class PopulationSource(Protocol):
    def citizens_of(self, region: str) -> Sequence[RawCitizen]: ...


class JsonDirectorySource:
    """Reads ``<directory>/<region>.json`` citizen files."""

    LIST_KEYS = ("humans", "citizens")

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, region: str) -> Path:
        return self.directory / f"{region}.json"

    def citizens_of(self, region: str) -> Sequence[RawCitizen]:
        path = self.path_for(region)
        if not path.is_file():
            raise RegionSourceMissing(region, f"{path} not found")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RegionSourceMissing(region, f"unreadable citizen file {path}: {e}") from e

        if isinstance(data, Mapping):
            for key in self.LIST_KEYS:
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
        if not isinstance(data, list):
            raise RegionSourceMissing(region, f"{path} holds no citizen list")

        logger.debug("Loaded %d citizens for %s from %s", len(data), region, path)
        return data


class InMemorySource:
    """Region -> citizens mapping held in memory (tests, embedding callers)."""

    def __init__(self, citizens: Mapping[str, Sequence[RawCitizen]] | None = None) -> None:
        self._citizens: dict[str, list[RawCitizen]] = {
            region: list(members) for region, members in (citizens or {}).items()
        }

    def add(self, region: str, citizens: Sequence[RawCitizen]) -> None:
        self._citizens.setdefault(region, []).extend(citizens)

    def citizens_of(self, region: str) -> Sequence[RawCitizen]:
        if region not in self._citizens:
            raise RegionSourceMissing(region)
        return list(self._citizens[region])

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
import logging
from typing import Iterable, List, Optional, Sequence

from skyfield.api import EarthSatellite, load

from orbitmag.exceptions import ElementSetError
from orbitmag.utils.time import to_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrbitalElements:
    """One two-line element set and its reference epoch."""
    satellite: EarthSatellite
    line1: str
    line2: str
    name: Optional[str] = None

    @property
    def epoch(self) -> datetime:
        """Reference epoch of the element set (UTC)."""
        return to_utc(self.satellite.epoch.utc_datetime())

    @property
    def catalog_number(self) -> int:
        return int(self.satellite.model.satnum)

    @property
    def designator(self) -> str:
        """Catalog number with classification, e.g. '39412U'."""
        classification = getattr(self.satellite.model, 'classification', 'U') or 'U'
        return f"{self.catalog_number:05d}{classification}"

    def matches(self, satellite: Optional[str]) -> bool:
        """Check a designator, bare catalog number or name against this set."""
        if not satellite:
            return True
        wanted = satellite.strip()
        if wanted.upper() == self.designator:
            return True
        if wanted.isdigit() and int(wanted) == self.catalog_number:
            return True
        return self.name is not None and wanted.lower() == self.name.strip().lower()

    def __str__(self) -> str:
        return f"{self.line1}\n{self.line2}"


def tle_checksum(line: str) -> int:
    """Modulo-10 checksum over the first 68 columns ('-' counts as 1)."""
    total = 0
    for char in line[:68]:
        if char.isdigit():
            total += int(char)
        elif char == '-':
            total += 1
    return total % 10


def _is_line(text: str, number: str) -> bool:
    return text.startswith(number + ' ') and len(text) >= 69


def parse_elements(lines: Iterable[str], ts=None) -> List[OrbitalElements]:
    """
    Parse every element set found in lines.

    Title lines are optional; lines that are not part of an element set
    are ignored.

    Raises:
        ElementSetError: On checksum mismatch or unparseable element values
    """
    ts = ts or load.timescale()
    elements = []
    title = line1 = None
    for raw in lines:
        text = raw.rstrip('\r\n ')
        if _is_line(text, '2') and line1 is not None:
            elements.append(_build(title, line1, text, ts))
            title = line1 = None
        elif _is_line(text, '1'):
            line1 = text
        else:
            title = text.strip() or None
            line1 = None
    return elements


def _build(title: Optional[str], line1: str, line2: str, ts) -> OrbitalElements:
    for line in (line1, line2):
        if not line[68].isdigit() or int(line[68]) != tle_checksum(line):
            raise ElementSetError(f"Element set checksum mismatch: {line}")
    if line1[2:7] != line2[2:7]:
        raise ElementSetError(f"Element set lines belong to different satellites: "
                              f"{line1[2:7]} / {line2[2:7]}")
    if title is not None and title.startswith('0 '):
        title = title[2:].strip()
    try:
        sat = EarthSatellite(line1[:69], line2[:69], title, ts)
    except (ValueError, IndexError) as e:
        raise ElementSetError(f"Malformed element set: {e}") from e
    return OrbitalElements(satellite=sat, line1=line1[:69], line2=line2[:69], name=title)


def load_elements(path: Path, ts=None) -> List[OrbitalElements]:
    """Read all element sets from a TLE file."""
    try:
        with open(path, 'r', encoding='ascii', errors='replace') as fh:
            lines = fh.readlines()
    except OSError as e:
        raise ElementSetError(f"Cannot read element set file {path}: {e}") from e
    elements = parse_elements(lines, ts)
    logger.debug(f"Loaded {len(elements)} element sets from {path}")
    return elements


def select_closest(elements: Sequence[OrbitalElements], target: Optional[datetime],
                   satellite: Optional[str] = None) -> OrbitalElements:
    """
    Pick the element set for satellite whose epoch is closest to target.

    With no target the most recent element set is returned.

    Raises:
        ElementSetError: If no element set matches the satellite
    """
    candidates = [e for e in elements if e.matches(satellite)]
    if not candidates:
        raise ElementSetError(
            f"No element set found for satellite {satellite or '(any)'}"
        )
    if target is None:
        return max(candidates, key=lambda e: e.epoch)
    target = to_utc(target)
    return min(candidates, key=lambda e: abs((e.epoch - target).total_seconds()))

"""
Fixed-width text table of field samples.
"""

import logging
import os
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
import tempfile
from typing import Iterable, List

from orbitmag.exceptions import OutputError
from orbitmag.pipeline import FieldSample

logger = logging.getLogger(__name__)

HEADER = (
    "Date   Alt   Lat   Lon         X         Y         Z         H         F        I       D\n"
    "        km   deg   deg        nT        nT        nT        nT        nT      deg     deg\n"
)


def fixed(value: float, width: int, decimals: int) -> str:
    """
    Right-aligned fixed-point text, rounding halves away from zero.

    The shortest decimal form of the float is rounded, so 12.25 gives 12.3
    as in legacy tables, where %-formatting would give 12.2.
    """
    quantum = Decimal(1).scaleb(-decimals)
    text = str(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))
    return text.rjust(width)


def format_row(sample: FieldSample, legacy_z_column: bool = False) -> str:
    """
    Format one sample as a table line (with newline).

    Columns follow "%6.1f %3d %5.1f %5.1f " + "%9.2f " * 5 + "%8.1f %7.1f".
    Altitude is truncated toward zero. With legacy_z_column the Y component
    is written in the Z column, as older tables did.
    """
    fix, b = sample.fix, sample.field
    z_column = b.y_nt if legacy_z_column else b.z_nt
    columns = [
        fixed(sample.decimal_year, 6, 1),
        "%3d" % int(fix.altitude_km),
        fixed(fix.latitude_deg, 5, 1),
        fixed(fix.longitude_deg, 5, 1),
    ]
    columns.extend(fixed(v, 9, 2) for v in
                   (b.x_nt, b.y_nt, z_column, b.horizontal_nt, b.total_nt))
    columns.append(fixed(b.inclination_deg, 8, 1))
    columns.append(fixed(b.declination_deg, 7, 1))
    return " ".join(columns) + "\n"


def format_table(samples: Iterable[FieldSample], legacy_z_column: bool = False) -> str:
    """Header followed by one line per sample, in the given order."""
    lines: List[str] = [HEADER]
    lines.extend(format_row(sample, legacy_z_column) for sample in samples)
    return "".join(lines)


def _new_file_mode() -> int:
    """Permissions open() would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_table(path: Path, samples: Iterable[FieldSample],
                legacy_z_column: bool = False) -> Path:
    """
    Write the table to path.

    The table goes to a temporary file in the target directory that replaces
    path only once fully written, so a failed run leaves no partial file.

    Raises:
        OutputError: If the file cannot be created or written
    """
    path = Path(path)
    samples = list(samples)
    text = format_table(samples, legacy_z_column)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile('w', encoding='ascii', dir=path.parent,
                                         prefix=f".{path.name}.", suffix=".tmp",
                                         delete=False) as fh:
            tmp_name = fh.name
            fh.write(text)
        os.chmod(tmp_name, _new_file_mode())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputError(str(path), str(e)) from e

    logger.debug(f"Wrote {len(samples)} rows to {path}")
    return path

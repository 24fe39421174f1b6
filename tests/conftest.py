from datetime import datetime, timezone

import pytest
from skyfield.api import load

from orbitmag.config import Config, GeomagConfig, InputConfig, OutputConfig, RunConfig
from orbitmag.models.elements import parse_elements, select_closest

ARDUSAT_TITLE = "ARDUSAT 1"
ARDUSAT_LINE1 = "1 39412U 98067DJ  13343.12893519  .00016717  00000-0  27814-3 0  9998"
ARDUSAT_LINE2 = "2 39412  51.6496 223.4598 0001000 169.1684 190.9681 15.53000000  1235"

# Older element set for the same satellite
ARDUSAT_OLD_LINE1 = "1 39412U 98067DJ  13340.50000000  .00016100  00000-0  26900-3 0  9982"
ARDUSAT_OLD_LINE2 = "2 39412  51.6501 236.5120 0001100 160.2210 199.9020 15.52800000   823"

ISS_TITLE = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   13343.12345678  .00016717  00000-0  10270-3 0  9995"
ISS_LINE2 = "2 25544  51.6490 223.4598 0003980 169.1684 269.2358 15.50137585862039"

ARDUSAT_EPOCH = datetime(2013, 12, 9, 3, 5, 40, tzinfo=timezone.utc)

TLE_TEXT = "\n".join([
    ISS_TITLE, ISS_LINE1, ISS_LINE2,
    ARDUSAT_TITLE, ARDUSAT_OLD_LINE1, ARDUSAT_OLD_LINE2,
    ARDUSAT_TITLE, ARDUSAT_LINE1, ARDUSAT_LINE2,
]) + "\n"


@pytest.fixture(scope="session")
def ts():
    return load.timescale()


@pytest.fixture
def tle_file(tmp_path):
    path = tmp_path / "ardusat.tle"
    path.write_text(TLE_TEXT, encoding="ascii")
    return path


@pytest.fixture(scope="session")
def ardusat(ts):
    return parse_elements([ARDUSAT_TITLE, ARDUSAT_LINE1, ARDUSAT_LINE2], ts)[0]


@pytest.fixture
def config(tle_file, tmp_path):
    """Baseline run: element set epoch, 6000 s at 20 s, dipole field."""
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    return Config(
        input=InputConfig(satellite="39412U", tle_dir=str(tle_file.parent),
                          tle_file=tle_file.name),
        run=RunConfig(duration_s=6000.0, timestep_s=20.0, start=None),
        geomag=GeomagConfig(model='dipole'),
        output=OutputConfig(dir=str(out_dir), file="field.dat"),
    )

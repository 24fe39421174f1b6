from dataclasses import replace
from datetime import timedelta
from pathlib import Path

import pytest

from orbitmag.exceptions import ConfigurationError, PropagationError
from orbitmag.main import GeomagneticFieldRun, build_config, main, parse_arguments, resolve_elements
from orbitmag.models.orbit import OrbitPropagator
from orbitmag.output import HEADER

from conftest import ARDUSAT_LINE1, ARDUSAT_LINE2


def run_args(tle_file, out_dir, *extra):
    return ["--tle", str(tle_file), "--output-dir", str(out_dir),
            "--output", "field.dat", "--duration", "600", "--timestep", "20", *extra]


def test_main_writes_table(tle_file, tmp_path):
    assert main(run_args(tle_file, tmp_path)) == 0
    lines = (tmp_path / "field.dat").read_text().splitlines()
    assert "\n".join(lines[:2]) + "\n" == HEADER
    assert len(lines) == 2 + 31


def test_legacy_z_column_flag(tle_file, tmp_path):
    assert main(run_args(tle_file, tmp_path, "--legacy-z-column")) == 0
    for line in (tmp_path / "field.dat").read_text().splitlines()[2:]:
        fields = line.split()
        assert fields[5] == fields[6]


def test_main_reports_missing_elements(tmp_path):
    assert main(run_args(tmp_path / "missing.tle", tmp_path)) == 1
    assert not (tmp_path / "field.dat").exists()


def test_main_propagation_failure_leaves_no_output(tle_file, tmp_path, monkeypatch):
    state_at = OrbitPropagator.state_at

    def decays_after_a_minute(self, epoch):
        if epoch > self.elements.epoch + timedelta(seconds=60):
            raise PropagationError(epoch, "mrt is less than 1.0 which indicates the satellite has decayed")
        return state_at(self, epoch)

    monkeypatch.setattr(OrbitPropagator, "state_at", decays_after_a_minute)
    assert main(run_args(tle_file, tmp_path)) == 1
    assert list(tmp_path.glob("*field.dat*")) == []


def test_main_reports_bad_timestep(tle_file, tmp_path):
    assert main(run_args(tle_file, tmp_path, "--timestep", "0")) == 1


def test_main_reports_unwritable_output(tle_file, tmp_path):
    assert main(["--tle", str(tle_file), "--output-dir", str(tmp_path / "nowhere"),
                 "--duration", "60"]) == 1


def test_main_with_config_file(tle_file, tmp_path):
    config_path = tmp_path / "run.yaml"
    config_path.write_text(
        "input:\n"
        f"  tle_dir: {tle_file.parent}\n"
        f"  tle_file: {tle_file.name}\n"
        "run:\n"
        "  duration: 100\n"
        "output:\n"
        f"  dir: {tmp_path}\n"
        "  file: from_config.dat\n"
    )
    assert main(["--config", str(config_path), "--timestep", "50"]) == 0
    lines = (tmp_path / "from_config.dat").read_text().splitlines()
    assert len(lines) == 2 + 3


def test_build_config_overrides(tle_file):
    args = parse_arguments(["--tle", str(tle_file), "--start", "2013-12-09T04:00:00Z",
                            "--per-sample-epoch", "--field-model", "dipole"])
    config = build_config(args)
    assert config.input.tle_path == Path(tle_file)
    assert config.run.start.hour == 4
    assert config.geomag.epoch == 'per_sample'
    assert config.output.legacy_z_column is False


def test_build_config_rejects_bad_start():
    with pytest.raises(ConfigurationError):
        build_config(parse_arguments(["--start", "tomorrow"]))


def test_inline_element_set_wins_over_file(config):
    config = replace(config, input=replace(config.input, tle=(ARDUSAT_LINE1, ARDUSAT_LINE2),
                                           tle_file="missing.tle"))
    assert resolve_elements(config).line1 == ARDUSAT_LINE1


def test_run_object_exposes_samples(config):
    config = replace(config, run=replace(config.run, duration_s=40.0))
    samples = GeomagneticFieldRun(config).run()
    assert len(samples) == 3
    assert config.output.path.exists()

# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Test the command-line interface."""

import json

import numpy as np
import pytest
import trimesh
from click.testing import CliRunner

from meshheal import __version__
from meshheal.cli.main import main


@pytest.fixture
def runner():
    return CliRunner()


class TestInfo:
    """Test the info command."""

    def test_text_output(self, runner, cube_file):
        result = runner.invoke(main, ["info", "-i", str(cube_file)])
        assert result.exit_code == 0, result.output
        assert "Number of facets: 12" in result.output
        assert "Volume: 1.000000" in result.output

    def test_json_output(self, runner, cube_file):
        result = runner.invoke(main, ["info", "-i", str(cube_file), "--json"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.output[result.output.index("{"):])
        assert data["error"] is False
        assert data["stats"]["connected_facets_3_edge"] == 12
        assert data["stats"]["volume"] == pytest.approx(1.0)
        assert data["mismatches"] == []


class TestRepair:
    """Test the repair command."""

    def test_default_output_path(self, runner, holed_cube_file):
        result = runner.invoke(main, ["repair", "-i", str(holed_cube_file)])
        assert result.exit_code == 0, result.output

        output = holed_cube_file.parent / "holed_repaired.stl"
        assert output.exists()
        assert trimesh.load(str(output), force="mesh").is_watertight
        assert "All facets connected" in result.output

    def test_refuses_to_overwrite(self, runner, cube_file, tmp_path):
        output = tmp_path / "exists.stl"
        output.write_bytes(b"")

        result = runner.invoke(main, ["repair", "-i", str(cube_file), "-o", str(output)])

        assert result.exit_code == 1
        assert "Output file exists" in result.output

    def test_report_and_flags(self, runner, holed_cube_file, tmp_path):
        output = tmp_path / "filled.stl"
        report = tmp_path / "reports" / "filled.json"

        result = runner.invoke(main, [
            "repair", "-i", str(holed_cube_file), "-o", str(output),
            "--fill-holes", "--report", str(report),
        ])
        assert result.exit_code == 0, result.output

        data = json.loads(report.read_text())
        assert data["options"]["fill_holes"] is True
        assert data["options"]["fix_all"] is False
        assert "fill_holes" in data["report"]["stages"]
        assert data["stats"]["facets_added"] == 1

    def test_config_file(self, runner, cube_file, tmp_path):
        config = tmp_path / "options.yaml"
        config.write_text("nearby: true\ntolerance: 0.001\niterations: 3\n", encoding="utf-8")
        output = tmp_path / "out.stl"
        report = tmp_path / "report.json"

        result = runner.invoke(main, [
            "repair", "-i", str(cube_file), "-o", str(output),
            "-c", str(config), "-r", str(report),
        ])
        assert result.exit_code == 0, result.output

        data = json.loads(report.read_text())
        assert data["options"]["nearby"] is True
        assert data["options"]["tolerance_override"] is True
        assert data["options"]["iterations"] == 3
        assert data["report"]["tolerance"] == pytest.approx(0.001)

    def test_bad_config_file(self, runner, cube_file, tmp_path):
        config = tmp_path / "options.yaml"
        config.write_text("repair_everything: true\n", encoding="utf-8")

        result = runner.invoke(main, [
            "repair", "-i", str(cube_file), "-o", str(tmp_path / "out.stl"), "-c", str(config),
        ])

        assert result.exit_code == 1
        assert "repair_everything" in result.output


class TestTransform:
    """Test the transform command."""

    def test_translate_and_scale(self, runner, cube_file, tmp_path):
        output = tmp_path / "moved.stl"

        result = runner.invoke(main, [
            "transform", "-i", str(cube_file), "-o", str(output),
            "--translate", "0", "0", "0", "--scale", "2",
        ])
        assert result.exit_code == 0, result.output

        moved = trimesh.load(str(output), force="mesh")
        np.testing.assert_allclose(moved.bounds, [[0.0, 0.0, 0.0], [2.0, 2.0, 2.0]], atol=1e-6)

    def test_mirror_keeps_volume_positive(self, runner, cube_file, tmp_path):
        output = tmp_path / "mirrored.stl"

        result = runner.invoke(main, [
            "transform", "-i", str(cube_file), "-o", str(output), "--mirror", "yz",
        ])
        assert result.exit_code == 0, result.output

        mirrored = trimesh.load(str(output), force="mesh")
        assert mirrored.volume == pytest.approx(1.0)


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output

"""Integration tests for the registration pipeline.

These tests run the full load -> register -> summarize flow on report files,
both through MappingPipeline and through the command-line entry point.
"""
import json

import pytest

from registration.config import MappingConfig
from registration.pipeline import MappingPipeline, PipelineResult, main
from registration.report_io import load_report, write_report
from simulation.generate_synthetic import SyntheticField


class TestPipelineResult:
    """Tests for PipelineResult."""

    def test_to_dict(self):
        result = PipelineResult(success=True, report_path="report.txt", beacon_count=3)
        d = result.to_dict()
        assert d["success"] is True
        assert d["beacon_count"] == 3
        assert d["warnings"] == []
        json.dumps(d)


class TestMappingPipeline:
    """Tests for MappingPipeline."""

    @pytest.fixture
    def pipeline(self):
        return MappingPipeline()

    @pytest.fixture
    def stalled_report(self, tmp_path, five_scanner_report):
        scanners = [s for s in load_report(five_scanner_report) if s.scanner_id != 1]
        path = tmp_path / "stalled.txt"
        write_report(scanners, path)
        return path

    def test_load_report(self, pipeline, five_scanner_report):
        assert pipeline.load_report(five_scanner_report)
        assert pipeline.result.num_scanners == 5
        assert pipeline.result.num_detections_total == 127
        assert pipeline.result.warnings == []

    def test_load_report_not_found(self, pipeline, tmp_path):
        assert not pipeline.load_report(tmp_path / "missing.txt")
        assert len(pipeline.result.errors) > 0

    def test_load_report_malformed(self, pipeline, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("--- scanner 0 ---\n1,2,a\n")
        assert not pipeline.load_report(path)
        assert "line 2" in pipeline.result.errors[0]

    def test_load_report_empty(self, pipeline, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("\n")
        assert not pipeline.load_report(path)

    def test_small_scanner_warning(self, tmp_path):
        path = tmp_path / "small.txt"
        path.write_text("--- scanner 0 ---\n1,2,3\n")
        pipeline = MappingPipeline()
        assert pipeline.load_report(path)
        assert len(pipeline.result.warnings) == 1

    def test_full_pipeline(self, pipeline, five_scanner_report):
        result = pipeline.run(five_scanner_report)

        assert result.success
        assert result.errors == []
        assert result.num_resolved == 5
        assert result.beacon_count == 79
        assert result.max_scanner_distance == 3621
        assert result.root_scanner_id == 0
        assert [s["id"] for s in result.scanners] == [0, 1, 3, 4, 2]
        assert result.processing_time_sec >= 0

    def test_pipeline_with_root_and_workers(self, five_scanner_report):
        config = MappingConfig()
        config.registration.root_scanner_id = 4
        config.registration.max_workers = 2
        result = MappingPipeline(config=config).run(five_scanner_report)

        assert result.success
        assert result.root_scanner_id == 4
        assert result.beacon_count == 79
        assert result.max_scanner_distance == 3621

    def test_stalled_pipeline(self, pipeline, stalled_report):
        result = pipeline.run(stalled_report)

        assert not result.success
        assert "unresolved scanners: 2, 3, 4" in result.errors[0]

    def test_invalid_min_overlap(self, five_scanner_report):
        config = MappingConfig()
        config.registration.min_overlap = 0
        result = MappingPipeline(config=config).run(five_scanner_report)
        assert not result.success
        assert result.errors

    def test_mistyped_setting(self, five_scanner_report):
        config = MappingConfig()
        config.registration.min_overlap = "12"
        result = MappingPipeline(config=config).run(five_scanner_report)
        assert not result.success
        assert result.errors

    def test_single_scanner_warning(self, tmp_path, five_scanner_report):
        path = tmp_path / "single.txt"
        write_report(load_report(five_scanner_report)[:1], path)
        result = MappingPipeline().run(path)
        assert result.success
        assert result.max_scanner_distance is None
        assert any("one scanner" in w for w in result.warnings)


class TestCommandLine:
    """Tests for the command-line entry point."""

    def test_main_success(self, five_scanner_report, capsys):
        exit_code = main(["--report", str(five_scanner_report)])
        assert exit_code == 0

        summary = json.loads(capsys.readouterr().out)
        assert summary["beacon_count"] == 79
        assert summary["max_scanner_distance"] == 3621

    def test_main_overrides(self, five_scanner_report, capsys, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"registration": {"min_overlap": 30}}))

        # min_overlap from the file alone cannot be met
        assert main(["--report", str(five_scanner_report), "--config", str(config_path)]) == 1
        capsys.readouterr()

        exit_code = main([
            "--report", str(five_scanner_report),
            "--config", str(config_path),
            "--min-overlap", "12",
            "--root", "2",
            "--workers", "2",
        ])
        assert exit_code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["root_scanner_id"] == 2

    def test_main_string_setting_in_config(self, five_scanner_report, capsys, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"registration": {"min_overlap": "12"}}))

        assert main(["--report", str(five_scanner_report), "--config", str(config_path)]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["beacon_count"] == 79

    def test_main_bad_config(self, five_scanner_report, capsys, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"registration": {"min_overlap": "many"}}))

        assert main(["--report", str(five_scanner_report), "--config", str(config_path)]) == 1
        summary = json.loads(capsys.readouterr().out)
        assert summary["success"] is False
        assert "registration.min_overlap" in summary["errors"][0]

    def test_main_missing_report(self, tmp_path, capsys):
        assert main(["--report", str(tmp_path / "none.txt")]) == 1
        summary = json.loads(capsys.readouterr().out)
        assert summary["success"] is False


class TestEndToEnd:
    """End-to-end integration tests."""

    def test_synthetic_report(self, tmp_path):
        """Generate a synthetic report, register it and compare with ground truth."""
        synthetic = SyntheticField(seed=17)
        synthetic.generate_report(tmp_path, n_scanners=5)
        with open(tmp_path / "ground_truth.json") as f:
            truth = json.load(f)

        result = MappingPipeline().run(tmp_path / "report.txt")

        assert result.success
        assert result.beacon_count == truth["beacon_count"]
        positions = {s["id"]: s["position"] for s in result.scanners}
        assert positions == {s["id"]: s["position"] for s in truth["scanners"]}

    @pytest.mark.slow
    def test_large_synthetic_field(self, tmp_path):
        synthetic = SyntheticField(seed=99)
        synthetic.generate_report(tmp_path, n_scanners=30)
        with open(tmp_path / "ground_truth.json") as f:
            truth = json.load(f)

        config = MappingConfig()
        config.registration.max_workers = 4
        result = MappingPipeline(config=config).run(tmp_path / "report.txt")

        assert result.success
        assert result.num_resolved == 30
        assert result.beacon_count == truth["beacon_count"]

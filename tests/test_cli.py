# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

import json

import pytest

from labelocr import cli
from labelocr.models import BoundingBox, FieldEntry, ImageSize
from labelocr.templates import capture_template, load_template, save_template


@pytest.fixture
def vocab_file(tmp_path):
    path = tmp_path / "samples.csv"
    path.write_text("Sample,Notes\nPBS_001,ctrl\nPBS_002,treated\n", encoding="utf-8")
    return path


def _run(capsys, *argv):
    cli.main(list(argv))
    return json.loads(capsys.readouterr().out)


def test_match_weighted(vocab_file, capsys):
    payload = _run(capsys, "match", "PBS_0O1", "--vocab", str(vocab_file), "--weighted")
    assert payload["matched_value"] == "PBS_001"
    assert payload["edit_distance"] == pytest.approx(0.3)


def test_match_without_result_prints_null(vocab_file, capsys):
    assert _run(capsys, "match", "XYZ", "--vocab", str(vocab_file)) is None


def test_match_thresholds_and_all(vocab_file, capsys):
    payload = _run(capsys, "match", "PBS_00", "--vocab", str(vocab_file), "--all", "5")
    assert [m["matched_value"] for m in payload] == ["PBS_001", "PBS_002"]

    strict = _run(capsys, "match", "PBS_00", "--vocab", str(vocab_file), "--max-distance", "0.5")
    assert strict is None

    assert _run(capsys, "match", "pbs_001", "--vocab", str(vocab_file), "--case-sensitive") is None


def test_correct(vocab_file, capsys):
    payload = _run(capsys, "correct", "--vocab", str(vocab_file), "id=PBS_0O1", "note=a=b", "--weighted")
    assert payload == {"id": "PBS_001", "note": "a=b"}


def test_correct_requires_key_value_pairs(vocab_file, capsys):
    with pytest.raises(SystemExit):
        cli.main(["correct", "--vocab", str(vocab_file), "PBS_0O1"])


def test_regions(tmp_path, capsys):
    entries = [
        FieldEntry(text="S-01", metadata_key="Sample_ID", box=BoundingBox(x=100, y=100, width=200, height=50)),
        FieldEntry(text="note", metadata_key="Note"),
    ]
    path = save_template(capture_template("slides", entries, ImageSize(width=1000, height=1000)), tmp_path / "t.json")

    payload = _run(capsys, "regions", "--template", str(path), "--width", "2000", "--height", "2000")
    assert payload == [
        {"fieldIndex": 0, "metadataKey": "Sample_ID", "box": {"x": 160, "y": 190, "width": 480, "height": 120}}
    ]

    exact = _run(capsys, "regions", "--template", str(path), "--width", "1000", "--height", "1000", "--dilation", "1")
    assert exact[0]["box"] == {"x": 100, "y": 100, "width": 200, "height": 50}


def test_check_key(capsys):
    assert _run(capsys, "check-key", "Sample_ID") == {
        "key": "Sample_ID",
        "valid": True,
        "error": None,
        "suggestion": "Sample_ID",
    }
    reserved = _run(capsys, "check-key", "name")
    assert not reserved["valid"]
    assert reserved["suggestion"] == "ocr_name"
    assert _run(capsys, "check-key", "sample id")["suggestion"] == "sample_id"


def test_settings_come_from_environment(vocab_file, capsys, monkeypatch):
    monkeypatch.setenv("LABELOCR_OCR_WEIGHTS", "true")
    payload = _run(capsys, "--log-level", "debug", "match", "PBS_0O1", "--vocab", str(vocab_file))
    assert payload["edit_distance"] == pytest.approx(0.3)


def _saved_template(tmp_path, dilation=1.0):
    entries = [FieldEntry(text="S-01", metadata_key="Sample_ID", box=BoundingBox(x=100, y=100, width=200, height=50))]
    template = capture_template("slides", entries, ImageSize(width=1000, height=1000), dilation_factor=dilation)
    return save_template(template, tmp_path / "t.json")


def test_regions_dilation_defaults_to_environment(tmp_path, capsys, monkeypatch):
    path = _saved_template(tmp_path)
    args = ("regions", "--template", str(path), "--width", "1000", "--height", "1000")
    assert _run(capsys, *args)[0]["box"] == {"x": 100, "y": 100, "width": 200, "height": 50}

    monkeypatch.setenv("LABELOCR_DILATION", "2.0")
    assert _run(capsys, *args)[0]["box"] == {"x": 0, "y": 75, "width": 400, "height": 100}
    assert _run(capsys, *args, "--dilation", "1")[0]["box"] == {"x": 100, "y": 100, "width": 200, "height": 50}


@pytest.mark.parametrize("dilation", ["0", "-1.5"])
def test_regions_rejects_non_positive_dilation(tmp_path, capsys, dilation):
    path = _saved_template(tmp_path)
    with pytest.raises(SystemExit):
        cli.main(["regions", "--template", str(path), "--width", "100", "--height", "100", "--dilation", dilation])
    assert "--dilation must be positive" in capsys.readouterr().err


@pytest.fixture
def correlation_files(tmp_path):
    blocks = [
        {"text": "S-02", "box": {"x": 150, "y": 100, "width": 200, "height": 50}, "confidence": 0.8, "level": "line"},
        {"text": "Liver", "box": {"x": 100, "y": 400, "width": 150, "height": 50}, "level": "line"},
    ]
    previous = [
        {
            "box": {"x": 100, "y": 100, "width": 200, "height": 50},
            "metadata_key": "Sample_ID",
            "image_size": {"width": 1000, "height": 1000},
        }
    ]
    blocks_path = tmp_path / "blocks.json"
    previous_path = tmp_path / "previous.json"
    blocks_path.write_text(json.dumps(blocks), encoding="utf-8")
    previous_path.write_text(json.dumps(previous), encoding="utf-8")
    return ["--blocks", str(blocks_path), "--previous", str(previous_path), "--width", "1000", "--height", "1000"]


def test_correlate_uses_settings_for_prefix_and_threshold(correlation_files, capsys, monkeypatch):
    payload = _run(capsys, "correlate", *correlation_files)
    assert [entry["metadata_key"] for entry in payload] == ["Sample_ID", "OCR_field_1"]
    assert payload[0]["text"] == "S-02"

    monkeypatch.setenv("LABELOCR_METADATA_PREFIX", "LBL_")
    monkeypatch.setenv("LABELOCR_OVERLAP_THRESHOLD", "0.99")
    payload = _run(capsys, "correlate", *correlation_files)
    assert [entry["metadata_key"] for entry in payload] == ["LBL_field_0", "LBL_field_1"]

    payload = _run(capsys, "correlate", *correlation_files, "--threshold", "0.5", "--prefix", "X_")
    assert [entry["metadata_key"] for entry in payload] == ["Sample_ID", "X_field_1"]


def test_correlate_rejects_malformed_blocks(tmp_path, capsys):
    path = tmp_path / "blocks.json"
    path.write_text('[{"text": "no box"}]', encoding="utf-8")
    with pytest.raises(SystemExit):
        cli.main(["correlate", "--blocks", str(path), "--width", "10", "--height", "10"])


def test_capture_writes_template_with_environment_dilation(tmp_path, capsys, monkeypatch):
    fields = tmp_path / "fields.json"
    fields.write_text(
        json.dumps(
            [
                {"text": "S-01", "metadata_key": "Sample_ID", "box": {"x": 100, "y": 100, "width": 200, "height": 50}},
                {"text": "note", "metadata_key": "Note"},
            ]
        ),
        encoding="utf-8",
    )
    out = tmp_path / "templates" / "slides.json"
    args = ("capture", "--fields", str(fields), "--width", "1000", "--height", "1000", "--name", "slides", "--out", str(out))

    monkeypatch.setenv("LABELOCR_DILATION", "1.0")
    payload = _run(capsys, *args)
    assert payload == {"path": str(out), "fieldCount": 2, "useFixedPositions": True, "dilationFactor": 1.0}
    assert load_template(out).field_mappings[1].metadata_key == "Note"

    assert _run(capsys, *args, "--dilation", "1.5")["dilationFactor"] == 1.5

    monkeypatch.delenv("LABELOCR_DILATION")
    assert _run(capsys, *args)["dilationFactor"] == 1.2

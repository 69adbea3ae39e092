import json

import cv2
import numpy as np
import pytest

from filmgrain.cli import app
from filmgrain.cli.app import main, read_rgba, validate_input
from filmgrain.rt.errors import InvalidBuffer
from filmgrain.utils import config

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CFG_PATH", str(tmp_path / "home" / "config.json"))

@pytest.fixture
def src_png(tmp_path):
    img = np.full((12, 20, 3), 120, np.uint8)
    img[:, 10:] = (30, 160, 220)
    p = tmp_path / "in.png"
    cv2.imwrite(str(p), img)
    return p

def test_grain_only(tmp_path, src_png):
    out = tmp_path / "out.png"
    assert main([str(src_png), str(out), "--iso", "800", "--strength", "0.8"]) == 0
    rgba = read_rgba(str(out))
    assert rgba.shape == (12, 20, 4)
    assert np.all(rgba[..., 3] == 255)
    meta = json.loads((tmp_path / "out.json").read_text(encoding="utf-8"))
    assert meta["grain"]["iso"] == 800
    assert meta["warnings"] == []

def test_auto_iso_without_exif(tmp_path, src_png):
    out = tmp_path / "auto.png"
    assert main([str(src_png), str(out), "--iso", "auto", "--no-sidecar"]) == 0
    assert out.exists()
    assert not (tmp_path / "auto.json").exists()

def test_lut_from_directory(tmp_path, src_png, lut_dir):
    out = tmp_path / "graded.png"
    rc = main([str(src_png), str(out), "--strength", "0", "--lut", "Kodak_Portra_400", "--lut-dir", str(lut_dir)])
    assert rc == 0
    rgba = read_rgba(str(out))
    src = read_rgba(str(src_png))
    assert np.abs(rgba[..., :3].astype(int) - (255 - src[..., :3].astype(int))).max() <= 1

def test_lut_from_cube_path(tmp_path, src_png, lut_dir):
    out = tmp_path / "graded.png"
    rc = main([str(src_png), str(out), "--strength", "0", "--lut", str(lut_dir / "Fuji_Acros_100.cube")])
    assert rc == 0
    assert np.abs(read_rgba(str(out)).astype(int) - read_rgba(str(src_png)).astype(int)).max() <= 1

def test_missing_lut_still_writes(tmp_path, src_png):
    out = tmp_path / "out.png"
    rc = main([str(src_png), str(out), "--lut", "Nope", "--lut-dir", str(tmp_path / "empty")])
    assert rc == 0
    meta = json.loads((tmp_path / "out.json").read_text(encoding="utf-8"))
    assert len(meta["warnings"]) == 1

def test_undecodable_input(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"nope")
    assert main([str(bad), str(tmp_path / "o.png")]) == 2

def test_list_luts(lut_dir, capsys):
    assert main(["--list-luts", "--lut-dir", str(lut_dir)]) == 0
    out = capsys.readouterr().out
    assert "Kodak_Portra_400\tKodak Portra 400 (portrait)" in out

def test_bad_iso_argument(tmp_path, src_png):
    with pytest.raises(SystemExit):
        main([str(src_png), str(tmp_path / "o.png"), "--iso", "fast"])

def _png(tmp_path, name, h, w):
    p = tmp_path / name
    cv2.imwrite(str(p), np.full((h, w, 3), 90, np.uint8))
    return p

def test_auto_iso_from_exif(tmp_path, exif_jpeg):
    out = tmp_path / "auto.png"
    assert main([str(exif_jpeg), str(out), "--iso", "auto"]) == 0
    meta = json.loads((tmp_path / "auto.json").read_text(encoding="utf-8"))
    assert meta["grain"]["iso"] == 1600

def test_preset_option(tmp_path, src_png, lut_dir):
    out = tmp_path / "p.png"
    assert main([str(src_png), str(out), "--preset", "portra_400", "--lut-dir", str(lut_dir)]) == 0
    meta = json.loads((tmp_path / "p.json").read_text(encoding="utf-8"))
    assert meta["preset_name"] == "portra_400"
    assert meta["lut"]["selected_lut"] == "Kodak_Portra_400"
    assert meta["lut"]["lut_strength"] == 0.8
    assert meta["warnings"] == []
    assert config.read_config()["last_preset"] == "portra_400"

def test_configured_preset_is_default(tmp_path, src_png):
    config.write_config(dict(config.DEFAULT_CFG, last_preset="neopan_1600"))
    out = tmp_path / "d.png"
    assert main([str(src_png), str(out)]) == 0
    meta = json.loads((tmp_path / "d.json").read_text(encoding="utf-8"))
    assert meta["preset_name"] == "neopan_1600"
    assert meta["grain"]["iso"] == 1600

def test_unknown_preset_option(tmp_path, src_png):
    with pytest.raises(SystemExit):
        main([str(src_png), str(tmp_path / "o.png"), "--preset", "no_such_film"])

def test_list_presets(capsys):
    assert main(["--list-presets"]) == 0
    names = capsys.readouterr().out.split()
    assert "portra_400" in names and "superia_400" in names

@pytest.mark.parametrize("h,w", [(5, 5), (9, 40), (12, 5001)])
def test_rejects_out_of_bounds_dimensions(tmp_path, h, w):
    src = _png(tmp_path, "edge.png", h, w)
    out = tmp_path / "o.png"
    assert main([str(src), str(out)]) == 2
    assert not out.exists()

def test_accepts_bound_dimensions(tmp_path):
    assert validate_input(_png(tmp_path, "min.png", 10, 10), np.zeros((10, 10, 4), np.uint8)) is None
    big = np.zeros((5000, 10, 4), np.uint8)
    assert validate_input(_png(tmp_path, "ok.png", 10, 10), big) is None

def test_rejects_unsupported_format(tmp_path):
    src = tmp_path / "in.bmp"
    cv2.imwrite(str(src), np.full((12, 12, 3), 90, np.uint8))
    assert main([str(src), str(tmp_path / "o.png")]) == 2

def test_rejects_oversized_file(tmp_path, src_png, monkeypatch):
    monkeypatch.setattr(app, "MAX_FILE_BYTES", 16)
    with pytest.raises(InvalidBuffer):
        validate_input(src_png)
    assert main([str(src_png), str(tmp_path / "o.png")]) == 2

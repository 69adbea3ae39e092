import numpy as np
import pytest

from filmgrain.rt.lut import identity_lut, to_cube

@pytest.fixture
def gray4():
    img = np.empty((4, 4, 4), np.uint8)
    img[...] = (128, 128, 128, 255)
    return img

@pytest.fixture
def gradient_img():
    # every channel value and a varying alpha
    h, w = 16, 32
    yy, xx = np.mgrid[0:h, 0:w]
    img = np.empty((h, w, 4), np.uint8)
    img[..., 0] = (xx * 8) % 256
    img[..., 1] = (yy * 16) % 256
    img[..., 2] = (xx * 3 + yy * 5) % 256
    img[..., 3] = (xx + yy * 7) % 256
    return img

@pytest.fixture
def identity_cube_text():
    return to_cube(identity_lut(2))

@pytest.fixture
def lut_dir(tmp_path):
    d = tmp_path / "luts"
    d.mkdir()
    inverted = identity_lut(2)
    inverted.samples = 1.0 - inverted.samples
    inverted.title = "Invert"
    (d / "Kodak_Portra_400.cube").write_text(to_cube(inverted), encoding="utf-8")
    (d / "Fuji_Acros_100.cube").write_text(to_cube(identity_lut(3)), encoding="utf-8")
    return d

@pytest.fixture
def exif_jpeg(tmp_path):
    from PIL import ExifTags, Image
    from PIL.TiffImagePlugin import IFDRational

    exif = Image.Exif()
    exif[ExifTags.Base.Model] = "X-T4"
    exif[ExifTags.IFD.Exif] = {
        ExifTags.Base.ISOSpeedRatings: 1600,
        ExifTags.Base.FNumber: IFDRational(28, 10),
    }
    p = tmp_path / "shot.jpg"
    Image.fromarray(np.full((16, 16, 3), 128, np.uint8)).save(p, exif=exif)
    return p

import os, sys, json, logging, argparse
import cv2, numpy as np

from ..rt.catalog import DirectoryCatalog, LUTCache, MemoryCatalog
from ..rt.engine import PixelPipeline
from ..rt.errors import InvalidBuffer, MalformedLUT
from ..rt.grain import get_algorithm, ISO_PROFILES
from ..rt.lut import load_cube
from ..utils.config import read_config, write_config
from ..utils.exif import read_exif, recommended_iso, format_exif_display
from ..utils.params import Settings, NO_LUT
from ..utils.presets import load_preset_by_name, apply_preset_to_settings, preset_names

logger = logging.getLogger("filmgrain")

_TO_RGBA = {1: cv2.COLOR_GRAY2RGBA, 3: cv2.COLOR_BGR2RGBA, 4: cv2.COLOR_BGRA2RGBA}

SUPPORTED_EXT = (".jpg", ".jpeg", ".png", ".webp")
MAX_FILE_BYTES = 10 * 1024 * 1024
MIN_SIDE, MAX_SIDE = 10, 5000

def validate_input(path, img=None):
    """File checks before decoding; pass the decoded image to also check its dimensions."""
    ext = os.path.splitext(str(path))[1].lower()
    if ext not in SUPPORTED_EXT:
        raise InvalidBuffer(f"unsupported format {ext or '(none)'}; use " + ", ".join(SUPPORTED_EXT))
    size = os.path.getsize(path)
    if size > MAX_FILE_BYTES:
        raise InvalidBuffer(f"{path} is {size} bytes, limit is {MAX_FILE_BYTES}")
    if img is not None:
        h, w = img.shape[:2]
        if w < MIN_SIDE or h < MIN_SIDE:
            raise InvalidBuffer(f"image too small: {w}x{h}, minimum {MIN_SIDE}x{MIN_SIDE}")
        if w > MAX_SIDE or h > MAX_SIDE:
            raise InvalidBuffer(f"image too large: {w}x{h}, maximum {MAX_SIDE}x{MAX_SIDE}")

def read_rgba(path) -> np.ndarray:
    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise InvalidBuffer(f"could not decode {path}")
    if img.dtype != np.uint8:
        # 16-bit sources are reduced to 8 bits per channel
        img = (img / 257.0).round().astype(np.uint8)
    ch = 1 if img.ndim == 2 else img.shape[2]
    return cv2.cvtColor(img, _TO_RGBA[ch])

def write_rgba(path, rgba):
    ok = cv2.imwrite(path, cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))
    if not ok:
        raise OSError(f"could not encode {path}")

def _iso_arg(v):
    if v == "auto":
        return v
    try:
        return int(v)
    except ValueError:
        raise argparse.ArgumentTypeError(f"ISO must be auto or an integer, got {v!r}") from None

def build_parser():
    ap = argparse.ArgumentParser(prog="filmgrain", description="Film grain and 3D LUT grading for still images.")
    ap.add_argument("input", nargs="?")
    ap.add_argument("output", nargs="?")
    ap.add_argument("--preset", help="preset name (built-in or ~/.filmgrain/presets)")
    ap.add_argument("--iso", type=_iso_arg, help="auto or one of " + ", ".join(map(str, ISO_PROFILES)))
    ap.add_argument("--strength", type=float)
    ap.add_argument("--grain-size", type=float)
    ap.add_argument("--fast", action="store_true", help="uncorrelated per-pixel grain instead of coherent noise")
    ap.add_argument("--seed", type=int, help="seed for --fast grain")
    ap.add_argument("--lut", help="LUT id from the LUT folder, or a path to a .cube file")
    ap.add_argument("--lut-strength", type=float)
    ap.add_argument("--lut-dir")
    ap.add_argument("--list-luts", action="store_true")
    ap.add_argument("--list-presets", action="store_true")
    ap.add_argument("--no-sidecar", action="store_true")
    ap.add_argument("--log-level")
    return ap

def _settings_from_args(args, cfg) -> Settings:
    s = Settings(algorithm=cfg["grain_algorithm"])
    name = args.preset or cfg["last_preset"]
    preset = load_preset_by_name(name) if name else None
    if preset is not None:
        apply_preset_to_settings(preset, s)
    elif args.preset:
        raise SystemExit(f"unknown preset: {args.preset}")
    elif name:
        logger.warning("configured preset %r not found, using defaults", name)
    if args.iso is not None:
        s.grain.iso = args.iso
    if args.strength is not None: s.grain.strength = args.strength
    if args.grain_size is not None: s.grain.grain_size = args.grain_size
    if args.fast: s.algorithm = "fast"
    if args.lut is not None: s.lut.selected_lut = args.lut
    if args.lut_strength is not None: s.lut.lut_strength = args.lut_strength
    return s

def main(argv=None):
    args = build_parser().parse_args(argv)
    cfg = read_config()
    logging.basicConfig(level=(args.log_level or cfg["log_level"]).upper(),
                        format="%(levelname)s %(name)s: %(message)s")

    lut_dir = args.lut_dir or cfg["lut_dir"]
    catalog = DirectoryCatalog(lut_dir)
    if args.list_luts:
        for info in catalog.available():
            print(f"{info.id}\t{info.display_name}")
        return 0
    if args.list_presets:
        print("\n".join(preset_names()))
        return 0
    if not args.input or not args.output:
        build_parser().error("input and output are required")

    s = _settings_from_args(args, cfg)
    try:
        validate_input(args.input)
        img = read_rgba(args.input)
        validate_input(args.input, img)
    except (InvalidBuffer, OSError) as e:
        logger.error("%s", e)
        return 2

    if s.grain.iso == "auto":
        exif = read_exif(args.input)
        s.grain.iso = recommended_iso(exif)
        logger.info("%s -> ISO %s", format_exif_display(exif), s.grain.iso)

    # a .cube path is served from memory, keyed by its file name
    if s.lut.selected_lut != NO_LUT and s.lut.selected_lut.endswith(".cube") and os.path.isfile(s.lut.selected_lut):
        try:
            table = load_cube(s.lut.selected_lut)
        except MalformedLUT as e:
            logger.warning("LUT %s skipped: %s", s.lut.selected_lut, e)
            s.lut.apply_lut = False
        else:
            key = os.path.basename(s.lut.selected_lut)
            catalog = MemoryCatalog({key: table})
            s.lut.selected_lut = key

    pipeline = PixelPipeline(catalog=catalog, cache=LUTCache(cfg["lut_cache_idle"]),
                             algorithm=get_algorithm(s.algorithm, seed=args.seed))
    result = pipeline.process(img, s.grain, s.lut)
    write_rgba(args.output, result.image)
    logger.info("wrote %s (%dx%d)", args.output, img.shape[1], img.shape[0])

    if not args.no_sidecar:
        meta = s.to_dict()
        meta["warnings"] = [str(w) for w in result.warnings]
        with open(os.path.splitext(args.output)[0] + ".json", "w", encoding="utf-8") as f:
            json.dump(meta, f, indent=2)
    if args.preset and args.preset != cfg["last_preset"]:
        write_config(dict(cfg, last_preset=args.preset))
    return 0

if __name__ == "__main__":
    sys.exit(main())

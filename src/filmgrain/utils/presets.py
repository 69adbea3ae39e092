import os, glob, logging, yaml
from .params import Settings

logger = logging.getLogger(__name__)

PRESETS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "presets")
USER_PRESETS_DIR = os.path.join(os.path.expanduser("~"), ".filmgrain", "presets")

def list_presets():
    files = []
    files += sorted(glob.glob(os.path.join(PRESETS_DIR, "*.yaml")))
    files += sorted(glob.glob(os.path.join(USER_PRESETS_DIR, "*.yaml")))
    return files

def _read_preset(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("skipping preset %s: %s", path, e)
        return None

def preset_names():
    names = set()
    for p in list_presets():
        data = _read_preset(p)
        if isinstance(data, dict) and "name" in data:
            names.add(data["name"])
    return sorted(names)

def load_preset_by_name(name: str) -> dict | None:
    for p in list_presets():
        data = _read_preset(p)
        if isinstance(data, dict) and data.get("name") == name:
            return data
    return None

def apply_preset_to_settings(preset: dict, settings: Settings):
    if not preset: return settings
    g = preset.get("grain", {})
    iso = g.get("iso", settings.grain.iso)
    settings.grain.iso = iso if iso == "auto" else int(iso)
    settings.grain.strength   = float(g.get("strength", settings.grain.strength))
    settings.grain.grain_size = float(g.get("size", settings.grain.grain_size))
    settings.algorithm        = str(g.get("algorithm", settings.algorithm))
    l = preset.get("lut", {})
    settings.lut.selected_lut = str(l.get("id", settings.lut.selected_lut))
    settings.lut.lut_strength = float(l.get("strength", settings.lut.lut_strength))
    settings.lut.apply_lut    = bool(l.get("apply", settings.lut.apply_lut))
    settings.preset_name = preset.get("name", settings.preset_name)
    return settings

def export_preset_from_settings(name: str, settings: Settings) -> dict:
    # Build a YAML-able dict from current Settings
    return {
        "name": name,
        "grain": {
            "iso": settings.grain.iso, "strength": settings.grain.strength,
            "size": settings.grain.grain_size, "algorithm": settings.algorithm
        },
        "lut": {
            "id": settings.lut.selected_lut, "strength": settings.lut.lut_strength,
            "apply": settings.lut.apply_lut
        }
    }

def save_user_preset(name: str, settings: Settings) -> str:
    data = export_preset_from_settings(name, settings)
    os.makedirs(USER_PRESETS_DIR, exist_ok=True)
    path = os.path.join(USER_PRESETS_DIR, f"{name}.yaml")
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path

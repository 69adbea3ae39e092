import os, json, logging

logger = logging.getLogger(__name__)

CFG_DIR  = os.path.join(os.path.expanduser("~"), ".filmgrain")
CFG_PATH = os.path.join(CFG_DIR, "config.json")

DEFAULT_CFG = {
    "last_preset": "superia_400",
    "lut_dir": "luts",
    "grain_algorithm": "coherent",
    "lut_cache_idle": 16,
    "log_level": "INFO",
}

def read_config():
    if not os.path.exists(CFG_PATH):
        return DEFAULT_CFG.copy()
    try:
        with open(CFG_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("could not read %s (%s), using defaults", CFG_PATH, e)
        return DEFAULT_CFG.copy()
    if not isinstance(data, dict):
        logger.warning("%s does not hold a JSON object, using defaults", CFG_PATH)
        return DEFAULT_CFG.copy()
    # fill defaults for any missing keys
    for k, v in DEFAULT_CFG.items():
        data.setdefault(k, v)
    return data

def write_config(cfg: dict):
    try:
        os.makedirs(os.path.dirname(CFG_PATH), exist_ok=True)
        with open(CFG_PATH, "w", encoding="utf-8") as f:
            json.dump(cfg, f, indent=2)
    except OSError as e:
        logger.warning("could not write %s: %s", CFG_PATH, e)

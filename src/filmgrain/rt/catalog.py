"""
LUT lookup: a small idle-eviction cache in front of a catalog provider.

Catalogs only answer "which LUTs exist" and "give me table X"; they play no
part in sampling.
"""
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .errors import LUTNotAvailable
from .lut import LUTTable, load_cube

logger = logging.getLogger(__name__)

class LUTCache:
    """identifier -> (table, last access tick); entries idle for more than max_idle ticks are dropped."""

    def __init__(self, max_idle: int = 16):
        if max_idle < 1:
            raise ValueError("max_idle must be >= 1")
        self.max_idle = max_idle
        self._entries: Dict[str, list] = {}
        self._tick = 0

    def _advance(self):
        self._tick += 1
        stale = [k for k, (_, t) in self._entries.items() if self._tick - t > self.max_idle]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.debug("evicted idle LUTs: %s", ", ".join(stale))

    def get(self, identifier: str) -> Optional[LUTTable]:
        self._advance()
        entry = self._entries.get(identifier)
        if entry is None:
            return None
        entry[1] = self._tick
        return entry[0]

    def put(self, identifier: str, table: LUTTable):
        self._advance()
        self._entries[identifier] = [table, self._tick]

    def clear(self):
        self._entries.clear()

    def stats(self) -> dict:
        return {"total": len(self._entries), "ids": sorted(self._entries), "tick": self._tick}

    def __contains__(self, identifier):
        return identifier in self._entries

    def __len__(self):
        return len(self._entries)

@dataclass
class LUTInfo:
    id: str
    name: str
    display_name: str
    category: str = "film"
    path: Optional[Path] = None

def format_lut_name(lut_id: str) -> str:
    name = lut_id.replace("_", " ")
    name = re.sub(r"\b\w", lambda m: m.group(0).upper(), name)
    return re.sub(r"(?<=[^\d\s])(\d+)$", r" \1", name)

_TYPE_TAGS = (
    (("acros", "hp5", "mono", "tmax", "ilford"), "(B&W)"),
    (("cinema", "eterna"), "(cinematic)"),
    (("vivid", "velvia"), "(vibrant)"),
    (("portrait", "portra"), "(portrait)"),
)

def format_display_name(lut_id: str) -> str:
    low = lut_id.lower()
    tag = "(color)"
    for keys, t in _TYPE_TAGS:
        if any(k in low for k in keys):
            tag = t
            break
    return f"{format_lut_name(lut_id)} {tag}"

class LUTCatalog:
    def available(self) -> List[LUTInfo]:
        raise NotImplementedError

    def load(self, identifier: str) -> LUTTable:
        raise NotImplementedError

class MemoryCatalog(LUTCatalog):
    """Tables registered by the caller, e.g. a user-supplied custom LUT."""

    def __init__(self, tables: Optional[Dict[str, LUTTable]] = None):
        self._tables = dict(tables or {})

    def add(self, identifier: str, table: LUTTable):
        self._tables[identifier] = table

    def available(self):
        return sorted((LUTInfo(k, format_lut_name(k), format_display_name(k)) for k in self._tables),
                      key=lambda i: i.name)

    def load(self, identifier):
        try:
            return self._tables[identifier]
        except KeyError:
            raise LUTNotAvailable(f"LUT not found: {identifier}") from None

class DirectoryCatalog(LUTCatalog):
    """LUTs from a folder: manifest.json when present, else every *.cube file."""

    def __init__(self, root):
        self.root = Path(root)
        self._index: Optional[Dict[str, LUTInfo]] = None

    def _read_manifest(self, manifest: Path) -> Dict[str, LUTInfo]:
        index = {}
        data = json.loads(manifest.read_text(encoding="utf-8"))
        for entry in data.get("luts", []):
            lut_id = entry["id"]
            index[lut_id] = LUTInfo(
                id=lut_id,
                name=entry.get("name", format_lut_name(lut_id)),
                display_name=format_display_name(lut_id),
                category=entry.get("category", "film"),
                path=self.root / entry.get("file", f"{lut_id}.cube"),
            )
        logger.info("LUT manifest %s: %d entries", manifest, len(index))
        return index

    def _scan(self) -> Dict[str, LUTInfo]:
        manifest = self.root / "manifest.json"
        if manifest.is_file():
            try:
                return self._read_manifest(manifest)
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning("ignoring unreadable manifest %s (%s), scanning folder", manifest, e)
        index = {}
        if self.root.is_dir():
            for p in sorted(self.root.glob("*.cube")):
                index[p.stem] = LUTInfo(p.stem, format_lut_name(p.stem), format_display_name(p.stem), path=p)
            logger.info("scanned %s: %d LUTs", self.root, len(index))
        else:
            logger.warning("LUT folder %s does not exist", self.root)
        return index

    def refresh(self):
        self._index = self._scan()

    def available(self):
        if self._index is None:
            self.refresh()
        return sorted(self._index.values(), key=lambda i: i.name)

    def load(self, identifier):
        if self._index is None:
            self.refresh()
        info = self._index.get(identifier)
        if info is None or info.path is None or not info.path.is_file():
            raise LUTNotAvailable(f"LUT not found: {identifier}")
        try:
            return load_cube(info.path)
        except OSError as e:
            raise LUTNotAvailable(f"cannot read LUT {identifier}: {e}") from e

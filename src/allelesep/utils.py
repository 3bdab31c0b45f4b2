from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def strip_bam_suffix(name: str) -> str:
    return name[: -len(".bam")] if name.endswith(".bam") else name

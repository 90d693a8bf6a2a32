from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, Tuple

_PROMPTS_ROOT = Path(__file__).resolve().parents[1] / "prompts"
_PROMPT_CACHE: Dict[str, Tuple[str, str]] = {}


def load_prompt(name: str) -> Tuple[str, str]:
    """
    Load a prompt template from the package prompts directory and compute its SHA256.
    """
    if name in _PROMPT_CACHE:
        return _PROMPT_CACHE[name]

    prompt_path = _PROMPTS_ROOT / f"{name}.md"
    text = prompt_path.read_text(encoding="utf-8").strip()
    sha = hashlib.sha256(text.encode("utf-8")).hexdigest()
    _PROMPT_CACHE[name] = (text, sha)
    return text, sha

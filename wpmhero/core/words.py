from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml


DEFAULT_WORD_COUNT = 220
DEFAULT_WORD_LIST = "common"

FALLBACK_WORDS: tuple[str, ...] = (
    "horizon",
    "velocity",
    "syntax",
    "momentum",
    "canvas",
    "quantum",
    "glyph",
    "cascade",
    "echo",
    "neuron",
    "catalyst",
    "lattice",
    "orbit",
    "phoenix",
    "vector",
    "zenith",
)


@dataclass(frozen=True)
class WordList:
    key: str
    title: str
    words: tuple[str, ...]


class WordRepository:
    """Word lists shipped as YAML files under ``wpmhero/data/words``."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or Path(__file__).resolve().parent.parent / "data" / "words"
        self._lists = self._load_lists()

    def all(self) -> List[WordList]:
        return list(self._lists.values())

    def get(self, key: str) -> WordList:
        return self._lists[key]

    def keys(self) -> List[str]:
        return list(self._lists)

    def _load_lists(self) -> Dict[str, WordList]:
        if not self._base_dir.exists():
            raise FileNotFoundError(f"Word list directory not found: {self._base_dir}")

        lists: Dict[str, WordList] = {}
        for path in sorted(self._base_dir.glob("*.yaml")):
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
            if not raw or not isinstance(raw, dict):
                raise ValueError(f"{path.name}: expected YAML with 'title' and 'words'")
            title = raw.get("title")
            content = raw.get("words")
            if not title or not isinstance(title, str):
                raise ValueError(f"{path.name}: missing or invalid 'title'")
            if content is None:
                raise ValueError(f"{path.name}: missing 'words'")
            if isinstance(content, list):
                words = [str(item).strip() for item in content if str(item).strip()]
            else:
                # allow words as one whitespace-separated string
                words = str(content).split()
            if not words:
                raise ValueError(f"{path.name}: 'words' is empty")
            lists[path.stem] = WordList(key=path.stem, title=title.strip(), words=tuple(words))

        if not lists:
            raise ValueError(f"No word lists (*.yaml) found in {self._base_dir}")
        return lists


def generate_word_sequence(
    count: int,
    source: Optional[Sequence[str]] = None,
    rng: Optional[random.Random] = None,
) -> list[str]:
    """Draw ``count`` words (with replacement) from ``source`` or the fallback vocabulary."""
    words = source if source else FALLBACK_WORDS
    rng = rng or random.Random()
    return [rng.choice(words) for _ in range(max(0, count))]


def flatten_words(words: Sequence[str]) -> str:
    return " ".join(words)


def count_total_characters(words: Sequence[str]) -> int:
    """Length of the words joined with single spaces."""
    return sum(len(word) for word in words) + max(len(words) - 1, 0)

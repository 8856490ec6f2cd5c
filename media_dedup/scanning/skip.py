import re
from pathlib import Path
from typing import Iterable, List, Optional

from .. import config


class SkipRules:
    """
    Path-matching rules applied before a file is classified.
    Each rule is a regular expression searched anywhere in the full path.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        self.patterns: List[str] = list(config.DEFAULT_SKIP_PATTERNS if patterns is None else patterns)
        self._regex = re.compile("|".join(f"(?:{p})" for p in self.patterns)) if self.patterns else None

    def matches(self, path: str) -> bool:
        if self._regex is None:
            return False
        return self._regex.search(path) is not None

    def __repr__(self):
        return f"SkipRules({self.patterns!r})"


def load_skip_patterns(skip_file: Optional[Path]) -> List[str]:
    """Reads one pattern per line; blank lines and '#' comments are ignored."""
    if not skip_file or not skip_file.exists():
        return []

    patterns = []
    with skip_file.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                patterns.append(line)
    return patterns

import os
from collections import defaultdict
from typing import Dict, List, Sequence

from ..models import Occurrence, PathAnalysis


class CommonPathResolver:
    """
    Infers what a set of same-named files have in common from their paths alone.

    Every path component is counted across all occurrences. Walking the
    longest path from the leaf upward:

      - the common suffix is the run of components seen as often as the
        file name itself, e.g. for
            /a/b/c/x.jpg, /m/b/c/x.jpg  ->  b/c/x.jpg
        which points at a copied file/folder that can be ignored;

      - the common ancestor is the next run of components at the highest
        count in the table, after skipping the part where the paths
        diverge, e.g. for
            /x/y/Drive/pics/.thumbnails/f.jpg, /m/n/Drive/pics/f.jpg
        the ancestor is /Drive/pics: the same folder under two roots.
    """

    def __init__(self, sep: str = os.sep):
        self.sep = sep

    def resolve(self, occurrences: Sequence[Occurrence]) -> PathAnalysis:
        if len(occurrences) < 2:
            return PathAnalysis()

        counts: Dict[str, int] = defaultdict(int)
        longest: List[str] = []

        for occ in occurrences:
            components = occ.path.split(self.sep)
            for comp in components:
                counts[comp] += 1
            # The longest path is the one that can hold both a divergent middle
            # and the shared parts around it; ties keep the first one seen
            if len(components) > len(longest):
                longest = components

        reversed_path = list(reversed(longest))  # leaf first
        leaf_count = counts[reversed_path[0]]

        # --- Common suffix ---
        suffix = []
        idx = 0
        while idx < len(reversed_path) and counts[reversed_path[idx]] >= leaf_count:
            suffix.append(reversed_path[idx])
            idx += 1
        common_suffix = self.sep.join(reversed(suffix))

        # --- Common ancestor ---
        max_count = max(counts.values())
        while idx < len(reversed_path) and counts[reversed_path[idx]] < max_count:
            idx += 1

        ancestor = []
        while idx < len(reversed_path) and counts[reversed_path[idx]] == max_count:
            ancestor.append(reversed_path[idx])
            idx += 1

        return PathAnalysis(common_suffix, self._join_ancestor(ancestor, reaches_root=idx == len(reversed_path)))

    def _join_ancestor(self, ancestor: List[str], reaches_root: bool) -> str:
        # only the empty root component of an absolute path: nothing shared
        if not any(ancestor):
            return ""
        joined = self.sep.join(reversed(ancestor))
        if not reaches_root:
            # interior fragment, anchored with a separator
            return self.sep + joined
        return joined

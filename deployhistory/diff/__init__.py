"""Process map diffing.

Submodules:
    process_map -- Key-ordered diff between two ProcessMaps and the
                   scale-effect projection used to describe a scale request.
"""

from deployhistory.diff.process_map import ScaleEffect, diff_process_maps, has_changes, scale_effect

__all__ = ["ScaleEffect", "diff_process_maps", "has_changes", "scale_effect"]

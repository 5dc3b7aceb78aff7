"""
Split a curve into visible and hidden pieces at its visibility cuts.
"""

from hlrdraw.config import VisibilityConfig
from hlrdraw.curves.bezier import chord_length_sq, split
from hlrdraw.hlr.cuts import find_visibility_cuts
from hlrdraw.models import StyledPiece


def split_by_visibility(bez, oracle, params=None, ignore_ids=None):
    """
    Cut a curve into StyledPieces in curve order.

    Pieces whose end-to-end squared length is below min_seg_len_sq are
    dropped. A curve without cuts comes back as a single piece holding the
    input curve unchanged.
    """
    params = (params or VisibilityConfig()).normalized()
    result = find_visibility_cuts(bez, oracle, params, ignore_ids)

    out = []
    current = bez
    prev_cut = 0.0
    for cut, visible in zip(result.cuts, result.segment_visible):
        local_t = (cut - prev_cut) / (1.0 - prev_cut)
        left, current = split(current, local_t)
        _push_if_not_tiny(out, left, visible, params.min_seg_len_sq)
        prev_cut = cut
    _push_if_not_tiny(out, current, result.segment_visible[-1], params.min_seg_len_sq)
    return out


def _push_if_not_tiny(out, bez, visible, min_seg_len_sq):
    if chord_length_sq(bez) < min_seg_len_sq:
        return
    out.append(StyledPiece(bez=bez, visible=visible))

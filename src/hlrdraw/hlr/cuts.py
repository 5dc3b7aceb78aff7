"""
Visibility cut-finding along a cubic curve.

Samples the oracle along the curve, smooths single-sample flips with a
3-point majority filter and refines each remaining transition by bisection.
"""

from hlrdraw.config import VisibilityConfig
from hlrdraw.curves.bezier import evaluate
from hlrdraw.models import VisibilityCuts


def majority_filter(values):
    """3-point majority vote; the two end samples are kept as they are."""
    out = list(values)
    for i in range(1, len(values) - 1):
        votes = int(values[i - 1]) + int(values[i]) + int(values[i + 1])
        out[i] = votes >= 2
    return out


def dedupe_sorted(values, eps):
    """Drop values within eps of the previously kept one."""
    out = []
    for v in values:
        if not out or abs(v - out[-1]) > eps:
            out.append(v)
    return out


def _sample(bez, oracle, count, eps, ignore_ids):
    points = evaluate(bez, [i / count for i in range(count + 1)])
    return [oracle.is_visible(p, eps, ignore_ids) for p in points]


def _bisect(bez, oracle, params, t_lo, t_hi, vis_lo, ignore_ids):
    lo, hi = t_lo, t_hi
    for _ in range(params.refine_iters):
        mid = 0.5 * (lo + hi)
        if oracle.is_visible(evaluate(bez, mid), params.eps_visible, ignore_ids) == vis_lo:
            lo = mid
        else:
            hi = mid
    return 0.5 * (lo + hi)


def find_visibility_cuts(bez, oracle, params=None, ignore_ids=None):
    """
    Locate parameters in (0, 1) where visibility of the curve flips.

    Args:
        bez: CubicBezier3 to walk
        oracle: VisibilityOracle for the scene
        params: VisibilityConfig (defaults when None)
        ignore_ids: ids forwarded to the oracle as self-hit allow-list

    Returns:
        VisibilityCuts with sorted cuts and len(cuts) + 1 segment flags.
    """
    params = (params or VisibilityConfig()).normalized()
    samples = params.samples

    if params.coarse_samples >= 2:
        coarse_n = min(params.coarse_samples, samples)
        coarse = _sample(bez, oracle, coarse_n, params.eps_visible, ignore_ids)
        if all(v == coarse[0] for v in coarse):
            return VisibilityCuts(cuts=[], segment_visible=[coarse[coarse_n // 2]])

    raw = _sample(bez, oracle, samples, params.eps_visible, ignore_ids)
    vis = majority_filter(raw)

    cuts = []
    for i in range(1, samples + 1):
        v0 = vis[i - 1]
        if v0 == vis[i]:
            continue
        cuts.append(_bisect(bez, oracle, params, (i - 1) / samples, i / samples, v0, ignore_ids))

    cuts = sorted(min(1.0, max(0.0, t)) for t in cuts)
    cuts = dedupe_sorted(cuts, params.cut_eps)
    cuts = [t for t in cuts if params.cut_eps < t < 1.0 - params.cut_eps]

    def visible_at(t):
        return vis[min(samples, max(0, int(round(t * samples))))]

    bounds = [0.0] + cuts + [1.0]
    segment_visible = [visible_at(0.5 * (a + b)) for a, b in zip(bounds, bounds[1:])]
    return VisibilityCuts(cuts=cuts, segment_visible=segment_visible)

"""
Polyline to cubic Bezier fitting for hlrdraw.

Fits cubic Bezier curves to 3D polylines using a Schneider-style algorithm.
Each polyline is approximated by a series of cubic Bezier segments whose
deviation from the input polyline stays within max_error, checked both at
the input points and on a dense sampling of each curve.
"""

import numpy as np

from hlrdraw.config import BezierFitConfig
from hlrdraw.curves.bezier import _bernstein, derivative, evaluate, line_to_cubic, second_derivative
from hlrdraw.models import CubicBezier3, FitResult

# Consecutive points closer than this (squared) are merged.
DUPLICATE_EPS_SQ = 1e-16

# Curve samples per span when measuring deviation from the polyline.
DENSE_SAMPLES = 64


def fit_polyline(points, params=None):
    """
    Fit cubic Bezier curves to a single polyline.

    Uses the Schneider algorithm:
    1. Estimate tangent directions at endpoints
    2. Fit a single cubic Bezier by least squares on the handle lengths
    3. Reparameterize with Newton-Raphson a few times if over tolerance
    4. If error still exceeds tolerance, split at max error point and recurse

    Returns a FitResult; depth_exhausted is set when some span was accepted
    at max depth without meeting max_error.
    """
    params = (params or BezierFitConfig()).normalized()
    pts = _prepare_points(points, params.close_eps)
    if len(pts) < 2:
        return FitResult()

    if len(pts) == 2:
        # Degenerate case: straight line
        return FitResult(cubics=[line_to_cubic(pts[0], pts[1])])

    tangent_start = _end_tangent(pts, forward=True)
    tangent_end = _end_tangent(pts, forward=False)

    state = {"exhausted": False}
    cubics = _fit_cubic(pts, tangent_start, tangent_end, params, 0, state)
    return FitResult(cubics=cubics, depth_exhausted=state["exhausted"])


def fit_polyline_to_cubics(points, params=None):
    """Convenience wrapper returning only the fitted cubics."""
    return fit_polyline(points, params).cubics


def _prepare_points(points, close_eps):
    """Close near-loops onto the first point and drop consecutive duplicates."""
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(pts) < 2:
        return pts

    gap = pts[-1] - pts[0]
    gap_sq = float(np.dot(gap, gap))
    if len(pts) > 2 and gap_sq <= close_eps * close_eps:
        if gap_sq > 1e-24:
            pts = np.vstack([pts, pts[:1]])
        else:
            pts = pts.copy()
            pts[-1] = pts[0]

    keep = [pts[0]]
    for p in pts[1:]:
        d = p - keep[-1]
        if float(np.dot(d, d)) > DUPLICATE_EPS_SQ:
            keep.append(p)
    return np.array(keep)


def _fit_cubic(points, tangent_start, tangent_end, params, depth, state):
    """Recursive cubic Bezier fitting. tangent_end points back into the span."""
    if len(points) == 2:
        dist = float(np.linalg.norm(points[1] - points[0]))
        alpha = max(params.min_alpha, dist / 3.0)
        bezier = CubicBezier3.from_points([
            points[0],
            points[0] + tangent_start * alpha,
            points[1] + tangent_end * alpha,
            points[1],
        ])
        if float(np.max(_dense_deviation(bezier, points))) > params.max_error:
            return [line_to_cubic(points[0], points[1])]
        return [bezier]

    # Parameterize points by chord length
    t_values = _chord_length_parameterize(points)
    bezier = _fit_bezier_to_pts(points, t_values, tangent_start, tangent_end, params)
    max_error, split_point = _compute_max_error(points, bezier, t_values)

    if max_error <= params.max_error:
        return [bezier]
    if depth >= params.max_depth:
        state["exhausted"] = True
        return [bezier]

    for _ in range(params.reparam_iters):
        t_values = _reparameterize(points, t_values, bezier)
        bezier = _fit_bezier_to_pts(points, t_values, tangent_start, tangent_end, params)
        max_error, split_point = _compute_max_error(points, bezier, t_values)
        if max_error <= params.max_error:
            return [bezier]

    # Split and recurse
    left_points = points[:split_point + 1]
    right_points = points[split_point:]

    tangent_split = _center_tangent(points, split_point)

    left_beziers = _fit_cubic(left_points, tangent_start, tangent_split, params, depth + 1, state)
    right_beziers = _fit_cubic(right_points, -tangent_split, tangent_end, params, depth + 1, state)

    return left_beziers + right_beziers


def _unit(v):
    n = float(np.linalg.norm(v))
    return v / n if n > 1e-9 else None


def _end_tangent(points, forward):
    """Average direction from an end point to its next (up to) four neighbours."""
    n = len(points)
    k = min(4, n - 1)
    if forward:
        origin = points[0]
        acc = (points[1:k + 1] - origin).sum(axis=0)
        fallback = points[1] - points[0]
    else:
        origin = points[-1]
        acc = (points[n - 1 - k:n - 1] - origin).sum(axis=0)
        fallback = points[-2] - points[-1]
    t = _unit(acc)
    if t is None:
        t = _unit(fallback)
    return t if t is not None else np.zeros(3)


def _center_tangent(points, index):
    """Tangent at a split point, pointing back toward the start of the span."""
    before = points[max(0, index - 1)]
    after = points[min(len(points) - 1, index + 1)]
    t = _unit(before - after)
    return t if t is not None else np.zeros(3)


def _chord_length_parameterize(points):
    """Compute parameter values based on chord length."""
    seg = np.linalg.norm(np.diff(points, axis=0), axis=1)
    t = np.concatenate([[0.0], np.cumsum(seg)])
    total = t[-1]
    if total <= 1e-12:
        return np.zeros(len(points))
    return t / total


def _fit_bezier_to_pts(points, t_values, tangent_start, tangent_end, params):
    """Least-squares handle lengths for fixed end points and tangents."""
    p0 = points[0]
    p3 = points[-1]

    b0 = _bernstein(0, t_values)
    b1 = _bernstein(1, t_values)
    b2 = _bernstein(2, t_values)
    b3 = _bernstein(3, t_values)

    a1 = b1[:, None] * tangent_start
    a2 = b2[:, None] * tangent_end

    c00 = float(np.sum(a1 * a1))
    c01 = float(np.sum(a1 * a2))
    c11 = float(np.sum(a2 * a2))

    target = points - (np.outer(b0 + b1, p0) + np.outer(b2 + b3, p3))
    x0 = float(np.sum(a1 * target))
    x1 = float(np.sum(a2 * target))

    alpha1 = alpha2 = 0.0
    det = c00 * c11 - c01 * c01
    if abs(det) > 1e-12:
        alpha1 = (x0 * c11 - x1 * c01) / det
        alpha2 = (c00 * x1 - c01 * x0) / det

    seg_len = float(np.linalg.norm(p3 - p0))
    eps = params.min_alpha
    if alpha1 < eps or alpha2 < eps:
        # Fallback to simple heuristic
        alpha1 = alpha2 = max(eps, seg_len / 3.0)

    # Clamp alpha to avoid overshooting handles
    max_alpha = max(eps, seg_len * params.max_alpha_factor)
    alpha1 = min(max(alpha1, eps), max_alpha)
    alpha2 = min(max(alpha2, eps), max_alpha)

    return CubicBezier3.from_points([
        p0,
        p0 + tangent_start * alpha1,
        p3 + tangent_end * alpha2,
        p3,
    ])


def _reparameterize(points, t_values, bezier):
    """One Newton-Raphson step per point toward its foot on the curve."""
    out = np.empty_like(t_values)
    for i, (p, t) in enumerate(zip(points, t_values)):
        q = evaluate(bezier, t)
        q1 = derivative(bezier, t)
        q2 = second_derivative(bezier, t)
        diff = q - p
        num = float(np.dot(diff, q1))
        den = float(np.dot(q1, q1) + np.dot(diff, q2))
        if abs(den) <= 1e-12:
            out[i] = t
            continue
        out[i] = min(1.0, max(0.0, t - num / den))
    return out


def _polyline_distance(samples, points):
    """Distance from each sample to the nearest segment of the polyline."""
    a = points[:-1]
    d = points[1:] - a
    len_sq = np.sum(d * d, axis=1)
    rel = samples[:, None, :] - a[None, :, :]
    u = np.sum(rel * d[None, :, :], axis=2) / np.where(len_sq > 0.0, len_sq, 1.0)
    foot = a[None, :, :] + np.clip(u, 0.0, 1.0)[:, :, None] * d[None, :, :]
    return np.linalg.norm(samples[:, None, :] - foot, axis=2).min(axis=1)


def _dense_deviation(bezier, points):
    return _polyline_distance(evaluate(bezier, np.linspace(0.0, 1.0, DENSE_SAMPLES)), points)


def _compute_max_error(points, bezier, t_values):
    """
    Maximum deviation of the curve from the span and the index to split at.

    Point errors compare each interior point with the curve at its parameter.
    The dense check catches curves that pass through the points but bulge
    away from the polyline between them; its split lands on the input point
    nearest the worst sample.
    """
    split_point = len(points) // 2
    if len(points) <= 2:
        return 0.0, split_point

    fitted = evaluate(bezier, t_values[1:-1])
    errors = np.linalg.norm(points[1:-1] - fitted, axis=1)
    i = int(np.argmax(errors))
    max_error = float(errors[i])
    if max_error > 0.0:
        split_point = i + 1

    dense = _dense_deviation(bezier, points)
    j = int(np.argmax(dense))
    if float(dense[j]) > max_error:
        max_error = float(dense[j])
        t_worst = j / (DENSE_SAMPLES - 1)
        nearest = int(np.argmin(np.abs(t_values - t_worst)))
        split_point = min(len(points) - 2, max(1, nearest))
    return max_error, split_point

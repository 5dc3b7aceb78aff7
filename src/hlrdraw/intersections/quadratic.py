"""
Numerically stable real roots of a*x^2 + b*x + c = 0.
"""

import math

LINEAR_EPS = 1e-12
ROOT_DEDUPE_EPS = 1e-6


def solve_quadratic(a, b, c):
    """
    Sorted, de-duplicated finite real roots.

    One root comes from the sign-aware formula, the other from the product of
    roots (c / q), so neither suffers cancellation. Falls back to the linear
    equation when |a| is negligible. A double root is returned once.
    """
    if abs(a) <= LINEAR_EPS:
        if abs(b) <= LINEAR_EPS:
            return []
        roots = [-c / b]
    else:
        disc = b * b - 4.0 * a * c
        if disc < 0.0:
            return []
        s = math.sqrt(disc)
        sign = 1.0 if (b if b != 0.0 else 1.0) > 0.0 else -1.0
        q = -0.5 * (b + sign * s)
        roots = [q / a]
        if q != 0.0:
            roots.append(c / q)
        else:
            roots.append(q / a)

    out = []
    for x in sorted(r for r in roots if math.isfinite(r)):
        if not out or abs(x - out[-1]) > ROOT_DEDUPE_EPS:
            out.append(x)
    return out

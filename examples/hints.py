"""Division and square root computed by hints and verified by constraints.

Hints are not trusted: a constraint recomputes the inverse operation with
native arithmetic nodes. With `x = 15` the square root check fails.
"""

from math import isqrt

import arithgraph as ag


def build() -> ag.Builder:
    builder = ag.Builder()

    # q = a / b, checked as q * b == a
    a = builder.init("a")
    b = builder.init("b")
    q = builder.hint([a, b], lambda vals: vals[0] // vals[1])
    builder.assert_equal(builder.mul(q, b), a)

    # r = sqrt(x), checked as r * r == x
    x = builder.init("x")
    r = builder.hint([x], lambda vals: isqrt(vals[0]))
    builder.assert_equal(builder.mul(r, r), x)

    return builder

"""f(x) = x^2 + x + 5, checked against a known output.

Run with:

    arithgraph run examples/polynomial.py --builder build -i examples/polynomial.toml --verify
"""

import arithgraph as ag


def build() -> ag.Builder:
    builder = ag.Builder()
    x = builder.init("x")
    x_squared = builder.mul(x, x)
    five = builder.constant(5)
    x_squared_plus_x = builder.add(x_squared, x)
    out = builder.add(x_squared_plus_x, five)
    builder.assert_equal(out, builder.constant(17))
    return builder

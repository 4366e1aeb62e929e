import math

import pytest

from dualdiff import function as ddf
from dualdiff.autodiff import deriv, derivative, derivatives
from dualdiff.dual import Dual
from dualdiff.measurement import (
    Context,
    Measurement,
    getcontext,
    localcontext,
    setcontext,
)


def test_propagation():
    x = Measurement(2.0, 0.1)
    y = Measurement(1.0, 0.2)
    assert (x + y).value == 3.0
    assert (x + y).uncertainty == pytest.approx(math.hypot(0.1, 0.2))
    assert (x * y).uncertainty == pytest.approx(math.hypot(0.1 * 1.0, 2.0 * 0.2))
    assert (x / y).uncertainty == pytest.approx(math.hypot(0.1, 2.0 * 0.2))
    assert (2 * x).uncertainty == pytest.approx(0.2)
    assert (1 - x).value == -1.0
    assert (x**2).uncertainty == pytest.approx(0.4)
    assert (Measurement(0.0, 0.1) ** 0.0).value == 1.0
    assert ddf.exp(x).uncertainty == pytest.approx(math.exp(2.0) * 0.1)
    assert ddf.pow(2.0, x).uncertainty == pytest.approx(4 * math.log(2.0) * 0.1)


def test_correlation():
    x = Measurement(2.0, 0.1)
    assert (x - x).uncertainty == 0.0
    assert (x + x).uncertainty == pytest.approx(0.2)
    assert (x / x).uncertainty == pytest.approx(0.0)


def test_reciprocal():
    x = Measurement(4.0, 0.2)
    assert x.reciprocal().value == 0.25
    assert x.reciprocal().uncertainty == pytest.approx(0.2 / 16)
    assert (1 / x).uncertainty == pytest.approx(0.2 / 16)

    with pytest.raises(ZeroDivisionError):
        Measurement(0.0, 0.1).reciprocal()


def test_invalid_uncertainty():
    with pytest.raises(ValueError):
        Measurement(1.0, -0.1)


def test_format():
    x = Measurement(2.0, 0.1)
    assert format(x, ".2f") == "2.00 ± 0.10"
    assert str(Measurement(1.5)) == "1.5 ± 0.0"


def test_context():
    ctx = getcontext()
    n = len(ctx)
    Measurement(1.0, 0.5)
    Measurement(1.0)
    assert len(ctx) == n + 1

    with localcontext() as local:
        assert getcontext() is local
        y = Measurement(3.0, 0.5)
        assert len(local) == 1

    assert getcontext() is ctx
    x = Measurement(3.0, 0.5)
    assert (x - y).uncertainty == pytest.approx(math.hypot(0.5, 0.5))

    setcontext(local)
    assert getcontext() is local
    setcontext(ctx)


def test_empty_context():
    previous = getcontext()
    setcontext(ctx := Context())
    assert getcontext() is ctx
    Measurement(1.0, 0.1)
    assert len(ctx) == 1
    assert str(ctx) == "Context(sources=1)"
    setcontext(previous)


def test_zero_uncertainty_matches_reals():
    funs = [
        lambda x: x**3,
        lambda x: x**2 + 2 * x,
        lambda x: (x + 1) / (x * x + 3),
        lambda x: ddf.exp(x) * ddf.sin(x) - ddf.sqrt(x),
        lambda x: ddf.pow(x, 1.5) + 2**x,
    ]

    for f in funs:
        for x in (0.5, 2.0, 3.7):
            result = derivative(f, Measurement(x, 0.0))
            assert isinstance(result, Measurement)
            assert result.value == derivative(f, x)
            assert result.uncertainty == 0.0


def test_uncertain_derivative():
    result = derivative(lambda x: x**2, Measurement(2.0, 0.1))
    assert result.value == 4.0
    assert result.uncertainty == pytest.approx(0.2)

    result = derivative(ddf.sin, Measurement(1.0, 0.05))
    assert result.value == pytest.approx(math.cos(1.0))
    assert result.uncertainty == pytest.approx(math.sin(1.0) * 0.05)


def test_uncertain_parameter():
    # the measurement enters as a coefficient, not as the differentiation variable
    a = Measurement(3.0, 0.3)
    result = derivative(lambda x: a * x**2 + x, 2.0)
    assert result.value == 13.0
    assert result.uncertainty == pytest.approx(1.2)

    result = derivative(lambda x: x * a, 2.0)
    assert result.value == 3.0


def test_dual_of_measurements():
    x = Dual(Measurement(2.0, 0.1), Measurement(1.0))
    y = x * x + 1
    assert y.primal.value == 5.0
    assert y.tangent.value == 4.0
    assert y.tangent.uncertainty == pytest.approx(0.2)
    assert abs(-x).primal.value == 2.0


def test_derivatives_threads():
    xs = [Measurement(0.1 * i, 0.01) for i in range(1, 30)]
    f = lambda x: ddf.log(x) * x  # noqa: E731
    sequential = derivatives(f, xs)
    concurrent = derivatives(f, xs, max_workers=4)
    assert [r.value for r in concurrent] == [r.value for r in sequential]
    assert [r.uncertainty for r in concurrent] == [r.uncertainty for r in sequential]


def _euler(rhs, y0, t0, t1, steps):
    h = (t1 - t0) / steps
    y = list(y0)
    t = t0

    for _ in range(steps):
        dy = rhs(t, y)
        y = [yi + h * dyi for yi, dyi in zip(y, dy)]
        t += h

    return y


def test_pendulum():
    def solve(g, length, theta0):
        def rhs(_, u):
            return [u[1], -(g / length) * ddf.sin(u[0])]

        return _euler(rhs, [theta0, 0 * theta0], 0.0, 1.0, 200)

    exact = solve(9.79, 1.0, math.pi / 3)
    certain = solve(Measurement(9.79), Measurement(1.0), Measurement(math.pi / 3))
    assert certain[0].value == pytest.approx(exact[0])
    assert certain[0].uncertainty == 0.0

    uncertain = solve(
        Measurement(9.79, 0.02), Measurement(1.0, 0.01), Measurement(math.pi / 3, 0.02)
    )
    assert uncertain[0].value == pytest.approx(exact[0])
    assert uncertain[0].uncertainty > 0.0

    # sensitivity of the final angle to g, through the same solver
    sensitivity = deriv(lambda g: solve(g, 1.0, math.pi / 3)[0])
    h = 1e-6
    finite = (solve(9.79 + h, 1.0, math.pi / 3)[0] - exact[0]) / h
    assert sensitivity(9.79) == pytest.approx(finite, rel=1e-4)

    with_error = sensitivity(Measurement(9.79, 0.0))
    assert with_error.value == pytest.approx(sensitivity(9.79))

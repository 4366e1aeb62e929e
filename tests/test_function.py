import math
from fractions import Fraction

import mpmath
import pytest

from dualdiff import function as ddf
from dualdiff.autodiff import derivative
from dualdiff.dual import Dual


def test_values():
    assert ddf.exp(0) == 1.0
    assert ddf.log(math.e) == pytest.approx(1.0)
    assert ddf.sqrt(Fraction(9, 4)) == 1.5
    assert ddf.pow(2, 10) == 1024.0
    assert ddf.e(1.0) == math.e
    assert ddf.pi(mpmath.mpf(1)) == +mpmath.pi
    assert isinstance(ddf.sin(mpmath.mpf("0.5")), mpmath.mpf)


def test_unsupported_type():
    with pytest.raises(TypeError):
        ddf.exp("1")

    with pytest.raises(TypeError):
        ddf.pow("2", 3)


def test_chain_rule():
    x = 0.8
    assert derivative(ddf.exp, x) == pytest.approx(math.exp(x))
    assert derivative(ddf.log, x) == pytest.approx(1 / x)
    assert derivative(ddf.sqrt, x) == pytest.approx(0.5 / math.sqrt(x))
    assert derivative(ddf.sin, x) == pytest.approx(math.cos(x))
    assert derivative(ddf.cos, x) == pytest.approx(-math.sin(x))
    assert derivative(ddf.tan, x) == pytest.approx(1 / math.cos(x) ** 2)
    assert derivative(ddf.pi, x) == 0.0

    f = lambda x: ddf.exp(ddf.sin(x) ** 2)  # noqa: E731
    expected = math.exp(math.sin(x) ** 2) * 2 * math.sin(x) * math.cos(x)
    assert derivative(f, x) == pytest.approx(expected)


def test_pow():
    x, y = 4.5, -2.2
    assert derivative(lambda t: ddf.pow(t, y), x) == pytest.approx(-0.0178707, 1e-5)
    assert derivative(lambda t: ddf.pow(x, t), y) == pytest.approx(0.0549797, 1e-5)
    assert derivative(lambda t: t**t, 2.0) == pytest.approx(4 * (math.log(2) + 1))
    assert derivative(lambda t: 2**t, 3.0) == pytest.approx(8 * math.log(2))


def test_pow_mixed_levels():
    x = Dual(2.0, 1.0)
    y = Dual(Dual(3.0, 0.0), Dual(1.0, 0.0))
    z = ddf.pow(x, y)
    assert z.level == 2
    assert z.primal.primal == pytest.approx(8.0)
    assert z.primal.tangent == pytest.approx(12.0)
    assert z.tangent.primal == pytest.approx(8.0 * math.log(2.0))

"""
#################################################
Mathematical functions (:mod:`dualdiff.function`)
#################################################

.. currentmodule:: dualdiff.function

This module provides differentiable mathematical functions. Each function accepts
integers, floats, other real numbers such as :class:`fractions.Fraction`, mpmath
numbers, :class:`~dualdiff.Dual`, and any type that defines the method
``_dualdiff_overload_(self, fun, *args)``.

Constant functions
==================

.. autosummary::
    :toctree: generated/

    e
    pi

Power, exponents, and logarithmic functions
===========================================

.. autosummary::
    :toctree: generated/

    exp
    log
    pow
    sqrt

Trigonometric functions
=======================

.. autosummary::
    :toctree: generated/

    cos
    sin
    tan

"""

import math
import numbers
from typing import Any, overload

import mpmath
import mpmath.ctx_mp_python

from dualdiff.autodiff import defderiv, primitive

_cos: Any = None
_e: Any = None
_exp: Any = None
_log: Any = None
_pi: Any = None
_pow: Any = None
_sin: Any = None
_sqrt: Any = None
_tan: Any = None


def _overload(fun, x, *args):
    if hook := getattr(type(x), "_dualdiff_overload_", None):
        if (res := hook(x, fun, *args)) is not NotImplemented:
            return res

        raise TypeError(f"{fun.__name__} does not support {type(x).__name__}")

    return NotImplemented


@overload
def e(x: float | int, /) -> float: ...


@overload
def e(x: Any, /) -> Any: ...


@primitive
def e(x, /):
    """Napier's constant in the number type of `x`.

    Examples
    --------
    >>> print(format(e(1.0), ".6f"))
    2.718282
    """
    if (res := _overload(_e, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return +mpmath.e

        case numbers.Real():
            return math.e

        case _:
            raise TypeError


@overload
def pi(x: float | int, /) -> float: ...


@overload
def pi(x: Any, /) -> Any: ...


@primitive
def pi(x, /):
    """Pi in the number type of `x`.

    Examples
    --------
    >>> print(format(pi(1.0), ".6f"))
    3.141593
    """
    if (res := _overload(_pi, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return +mpmath.pi

        case numbers.Real():
            return math.pi

        case _:
            raise TypeError


@overload
def exp(x: float | int, /) -> float: ...


@overload
def exp(x: Any, /) -> Any: ...


@primitive
def exp(x, /):
    """Exponential.

    Examples
    --------
    >>> print(format(exp(2), ".6f"))
    7.389056
    """
    if (res := _overload(_exp, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return mpmath.exp(x)

        case numbers.Real():
            return math.exp(x)

        case _:
            raise TypeError


@overload
def log(x: float | int, /) -> float: ...


@overload
def log(x: Any, /) -> Any: ...


@primitive
def log(x, /):
    """Natural logarithm.

    Examples
    --------
    >>> print(format(log(5), ".6f"))
    1.609438
    """
    if (res := _overload(_log, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return mpmath.log(x)

        case numbers.Real():
            return math.log(x)

        case _:
            raise TypeError


@overload
def pow(x: float | int, y: float | int, /) -> float: ...


@overload
def pow(x: Any, y: Any, /) -> Any: ...


@primitive
def pow(x, y, /):
    """`x` raised to the power `y`.

    Examples
    --------
    >>> print(format(pow(3.25, 1.25), ".6f"))
    4.363693
    """
    linearized = (x, y)

    if type(x) is not type(y) and issubclass(type(y), type(x)):
        linearized = (y, x)

    for z in linearized:
        if hook := getattr(type(z), "_dualdiff_overload_", None):
            if (res := hook(z, _pow, x, y)) is not NotImplemented:
                return res

    mpnumeric = mpmath.ctx_mp_python.mpnumeric

    match x, y:
        case (mpnumeric(), _) | (_, mpnumeric()):
            return mpmath.power(x, y)

        case (numbers.Real(), numbers.Real()):
            return math.pow(x, y)

        case _:
            raise TypeError


@overload
def sqrt(x: float | int, /) -> float: ...


@overload
def sqrt(x: Any, /) -> Any: ...


@primitive
def sqrt(x, /):
    """Square root.

    Examples
    --------
    >>> print(format(sqrt(2.0), ".6f"))
    1.414214
    """
    if (res := _overload(_sqrt, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return mpmath.sqrt(x)

        case numbers.Real():
            return math.sqrt(x)

        case _:
            raise TypeError


@overload
def cos(x: float | int, /) -> float: ...


@overload
def cos(x: Any, /) -> Any: ...


@primitive
def cos(x, /):
    """Cosine."""
    if (res := _overload(_cos, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return mpmath.cos(x)

        case numbers.Real():
            return math.cos(x)

        case _:
            raise TypeError


@overload
def sin(x: float | int, /) -> float: ...


@overload
def sin(x: Any, /) -> Any: ...


@primitive
def sin(x, /):
    """Sine."""
    if (res := _overload(_sin, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return mpmath.sin(x)

        case numbers.Real():
            return math.sin(x)

        case _:
            raise TypeError


@overload
def tan(x: float | int, /) -> float: ...


@overload
def tan(x: Any, /) -> Any: ...


@primitive
def tan(x, /):
    """Tangent."""
    if (res := _overload(_tan, x, x)) is not NotImplemented:
        return res

    match x:
        case mpmath.ctx_mp_python.mpnumeric():
            return mpmath.tan(x)

        case numbers.Real():
            return math.tan(x)

        case _:
            raise TypeError


_cos = cos
_e = e
_exp = exp
_log = log
_pi = pi
_pow = pow
_sin = sin
_sqrt = sqrt
_tan = tan

defderiv(cos, lambda x: -sin(x))
defderiv(e, lambda x: x * 0)
defderiv(exp, exp)
defderiv(log, lambda x: 1 / x)
defderiv(pi, lambda x: x * 0)
defderiv(pow, lambda x, y: y * pow(x, y - 1), argnum=0)
defderiv(pow, lambda x, y: log(x) * pow(x, y), argnum=1)
defderiv(sin, cos)
defderiv(sqrt, lambda x: 1 / (2 * sqrt(x)))
defderiv(tan, lambda x: 1 + tan(x) ** 2)

"""
##############################################
Measurements (:mod:`dualdiff.measurement`)
##############################################

.. currentmodule:: dualdiff.measurement

This module provides numbers with uncertainty propagated by linear error propagation.
Since the propagation only uses ordinary arithmetic, measurements can be used as the
coefficients of :class:`~dualdiff.Dual`.

Measurement
===========

.. autosummary::
    :toctree: generated/

    Measurement

Context
=======

.. autosummary::
    :toctree: generated/

    Context
    getcontext
    localcontext
    setcontext

"""

import contextlib
import contextvars
import itertools
import numbers
import operator
import threading
from collections.abc import Callable, Iterable
from typing import Any, Never, Self

import mpmath.ctx_mp_python

from dualdiff import function as ddf
from dualdiff.typing import ComparableScalar

_serial = itertools.count()


class Context:
    """Create a new context.

    Context is a collection of independent sources of uncertainty. Every
    :class:`Measurement` created with a nonzero uncertainty draws a new source from the
    current context. Sources are unique across contexts, so measurements created in
    different contexts are always uncorrelated.
    """

    __slots__ = ("_serial", "_count", "_lock")
    _serial: int
    _count: int
    _lock: threading.Lock

    def __init__(self):
        self._serial = next(_serial)
        self._count = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Return the number of sources created so far."""
        return self._count

    def __str__(self):
        return f"{type(self).__name__}(sources={self._count})"

    def create_source(self) -> tuple[int, int]:
        with self._lock:
            result = (self._serial, self._count)
            self._count += 1

        return result


_var: contextvars.ContextVar[Context] = contextvars.ContextVar("measurement")


def getcontext() -> Context:
    """Return the current context for the active thread."""
    if (context := _var.get(None)) is not None:
        return context

    context = Context()
    _var.set(context)
    return context


def setcontext(ctx: Context) -> None:
    """Set the current context for the active thread to `ctx`."""
    _var.set(ctx)


@contextlib.contextmanager
def localcontext(ctx: Context | None = None):
    """Return a context manager that will set the current context for the active thread
    to `ctx`, or to a new context if omitted, on entry to the with-statement and
    restore the previous context when exiting the with-statement."""
    if ctx is None:
        ctx = Context()

    token = _var.set(ctx)

    try:
        yield ctx
    finally:
        _var.reset(token)


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Number | mpmath.ctx_mp_python.mpnumeric)


class Measurement[T: ComparableScalar](ComparableScalar):
    """Number with standard uncertainty.

    Parameters
    ----------
    value : T
        Central value.
    uncertainty : T, default=0
        Standard uncertainty. If nonzero, it is attributed to a new source drawn from
        the current context, i.e. the measurement is independent of all existing ones.

    Attributes
    ----------
    value : T
    uncertainty : T
    variance : T

    Raises
    ------
    ValueError
        If `uncertainty` is negative.

    Notes
    -----
    Internally, a measurement keeps the partial derivatives w.r.t. each source scaled
    by the uncertainty of the source. Correlations are thus taken into account.

    Examples
    --------
    >>> x = Measurement(2.0, 0.1)
    >>> y = Measurement(1.0, 0.2)
    >>> print(format(x - y, ".3f"))
    1.000 ± 0.224
    >>> print(format(x - x, ".3f"))
    0.000 ± 0.000
    """

    __slots__ = ("_value", "_coeffs")
    _value: T
    _coeffs: dict[tuple[int, int], T]

    def __init__(self, value: T, uncertainty: T | int = 0, **kwargs: Never):
        if kwargs.get("_skipinit", False):
            return

        if uncertainty < 0:
            raise ValueError("uncertainty must not be negative")

        self._value = value
        self._coeffs = {}

        if uncertainty != 0:
            self._coeffs[getcontext().create_source()] = uncertainty  # type: ignore

    @classmethod
    def _propagate(cls, value: T, terms: Iterable[tuple[Any, Self]]) -> Self:
        coeffs: dict[tuple[int, int], T] = {}

        for partial, arg in terms:
            for key, coeff in arg._coeffs.items():
                tmp = partial * coeff
                coeffs[key] = coeffs[key] + tmp if key in coeffs else tmp

        result = cls(None, _skipinit=True)  # type: ignore
        result._value = value
        result._coeffs = coeffs
        return result

    @property
    def value(self) -> T:
        return self._value

    @property
    def variance(self) -> T:
        result = self._value * 0

        for coeff in self._coeffs.values():
            result += coeff * coeff

        return result

    @property
    def uncertainty(self) -> T:
        return ddf.sqrt(self.variance)

    def _dualdiff_overload_(self, fun, *args, **kwargs):
        derivs = fun.__dict__.get("_dualdiff_derivs")

        if derivs is None:
            return NotImplemented

        values = [x._value if isinstance(x, Measurement) else x for x in args]
        terms = []

        for argnum, arg in enumerate(args):
            if isinstance(arg, Measurement):
                if argnum not in derivs:
                    return NotImplemented

                terms.append((derivs[argnum](*values, **kwargs), arg))

        return self._propagate(fun(*values, **kwargs), terms)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r}, {self.uncertainty!r})"

    def __str__(self) -> str:
        return f"{self._value} ± {self.uncertainty}"

    def __format__(self, format_spec: str) -> str:
        value = format(self._value, format_spec)
        uncertainty = format(self.uncertainty, format_spec)
        return f"{value} ± {uncertainty}"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented

        return other._value == self._value and other._coeffs == self._coeffs  # type: ignore

    def __hash__(self) -> int:
        return hash((self._value, frozenset(self._coeffs.items())))

    def __add__(self, rhs: Self | T | int) -> Self:
        if isinstance(rhs, Measurement):
            return self._propagate(self._value + rhs._value, ((1, self), (1, rhs)))

        if not _is_number(rhs):
            return NotImplemented

        return self._propagate(self._value + rhs, ((1, self),))

    def __sub__(self, rhs: Self | T | int) -> Self:
        if isinstance(rhs, Measurement):
            return self._propagate(self._value - rhs._value, ((1, self), (-1, rhs)))

        if not _is_number(rhs):
            return NotImplemented

        return self._propagate(self._value - rhs, ((1, self),))

    def __mul__(self, rhs: Self | T | int) -> Self:
        if isinstance(rhs, Measurement):
            terms = ((rhs._value, self), (self._value, rhs))
            return self._propagate(self._value * rhs._value, terms)

        if not _is_number(rhs):
            return NotImplemented

        return self._propagate(self._value * rhs, ((rhs, self),))

    def __truediv__(self, rhs: Self | T | int) -> Self:
        if isinstance(rhs, Measurement):
            inv = 1 / rhs._value
            value = self._value / rhs._value
            return self._propagate(value, ((inv, self), (-value * inv, rhs)))

        if not _is_number(rhs):
            return NotImplemented

        return self._propagate(self._value / rhs, ((1 / rhs, self),))

    def __pow__(self, rhs: Self | T | int) -> Self:
        if isinstance(rhs, Measurement):
            return ddf.pow(self, rhs)

        if not _is_number(rhs):
            return NotImplemented

        if rhs == 0:
            return self._propagate(self._value**0, ((0, self),))

        partial = rhs * self._value ** (rhs - 1)
        return self._propagate(self._value**rhs, ((partial, self),))

    def __neg__(self) -> Self:
        return self._propagate(-self._value, ((-1, self),))

    def __pos__(self) -> Self:
        return self._propagate(+self._value, ((1, self),))

    def __abs__(self) -> Self:
        if self._value < 0:
            return self.__neg__()

        return self.__pos__()

    def __radd__(self, lhs: Self | T | int) -> Self:
        return self.__add__(lhs)

    def __rsub__(self, lhs: Self | T | int) -> Self:
        if not _is_number(lhs):
            return NotImplemented

        return self._propagate(lhs - self._value, ((-1, self),))

    def __rmul__(self, lhs: Self | T | int) -> Self:
        return self.__mul__(lhs)

    def __rtruediv__(self, lhs: Self | T | int) -> Self:
        if not _is_number(lhs):
            return NotImplemented

        value = lhs / self._value
        return self._propagate(value, ((-value / self._value, self),))

    def __rpow__(self, lhs: T | int) -> Self:
        if not _is_number(lhs):
            return NotImplemented

        return ddf.pow(lhs, self)

    def reciprocal(self) -> Self:
        """Return the reciprocal of the measurement.

        Raises
        ------
        ZeroDivisionError
            If the value is zero.
        """
        inv = 1 / self._value
        return self._propagate(inv, ((-inv * inv, self),))

    def _compare(self, rhs: Any, op: Callable[[Any, Any], bool]) -> bool:
        if isinstance(rhs, Measurement):
            return op(self._value, rhs._value)

        if not _is_number(rhs):
            return NotImplemented

        return op(self._value, rhs)

    def __lt__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.lt)

    def __le__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.le)

    def __gt__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.gt)

    def __ge__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.ge)

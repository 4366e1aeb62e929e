import itertools
import operator
import threading
from collections.abc import Callable
from typing import Any, Self, final

from dualdiff.typing import Ring, Scalar


def _level(value: object) -> int:
    return value._level if isinstance(value, Dual) else 0


def _tag(value: object) -> tuple[int, ...]:
    return value._tag if isinstance(value, Dual) else ()


_seeds = itertools.count(1)
_seeds_lock = threading.Lock()


@final
class Dual[T: Ring](Scalar):
    r"""Dual number for an arbitrary coefficient type.

    Parameters
    ----------
    primal : T
        Function value.
    tangent : T
        Derivative accumulator.
    tag : tuple of int, optional
        Perturbation tag. See Notes.

    Attributes
    ----------
    primal : T
    tangent : T
    level : int
        Nesting depth. A dual whose parts are not duals has level 1.
    tag : tuple of int
        Perturbation the tangent belongs to. Duals with a smaller tag are treated as
        constants by duals with a larger one.

    Notes
    -----
    Instances of this class behave like elements of the dual number ring

    .. math::

        T[\varepsilon]/(\varepsilon^2),

    where :math:`p + \varepsilon d` is represented by ``Dual(p, d)``. Values that are
    not duals, or are duals of a smaller tag, are treated as constants, i.e. their
    tangent is zero. The zero is never constructed: adding a constant only touches
    the primal, and multiplying by a constant scales both parts.

    If `tag` is omitted, a dual whose parts are not duals gets the tag ``(0,)`` and a
    dual whose parts are duals gets a tag just above the largest tag of its parts.
    :meth:`variable` draws a fresh tag that is larger than any tag drawn before, so
    that nested differentiation never mixes perturbations.

    Instances are immutable. Every operation returns a new dual.

    Examples
    --------
    >>> x = Dual(3.0, 1.0)
    >>> x * x + 2 * x
    Dual(primal=15.0, tangent=8.0)
    """

    __slots__ = ("_primal", "_tangent", "_level", "_tag")
    _primal: T
    _tangent: T
    _level: int
    _tag: tuple[int, ...]

    def __init__(self, primal: T, tangent: T, tag: tuple[int, ...] | None = None):
        self._primal = primal
        self._tangent = tangent
        self._level = max(_level(primal), _level(tangent)) + 1

        if tag is None:
            inner = max(_tag(primal), _tag(tangent))
            tag = inner + (1,) if inner else (0,)

        self._tag = tag

    @classmethod
    def variable(cls, primal: T, tangent: T) -> Self:
        """Return a dual with a fresh tag, larger than the tag of every existing dual
        created by this method."""
        with _seeds_lock:
            tag = (next(_seeds),)

        return cls(primal, tangent, max(tag, _tag(primal) + (1,), _tag(tangent) + (1,)))

    @property
    def primal(self) -> T:
        return self._primal

    @property
    def tangent(self) -> T:
        return self._tangent

    @property
    def level(self) -> int:
        return self._level

    @property
    def tag(self) -> tuple[int, ...]:
        return self._tag

    def __repr__(self) -> str:
        return f"{type(self).__name__}(primal={self._primal!r}, tangent={self._tangent!r})"

    def __str__(self) -> str:
        return f"{type(self).__name__}(primal={self._primal}, tangent={self._tangent})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented

        return (
            other._tag == self._tag  # type: ignore
            and other._primal == self._primal  # type: ignore
            and other._tangent == self._tangent  # type: ignore
        )

    def __hash__(self) -> int:
        return hash((self._primal, self._tangent, self._tag))

    def _is_constant(self, value: object) -> bool:
        return _tag(value) < self._tag

    def __add__(self, rhs: Self | T | int) -> Self:
        if self._is_constant(rhs):
            return self.__class__(self._primal + rhs, self._tangent, self._tag)  # type: ignore

        if rhs._tag > self._tag:  # type: ignore
            return rhs.__radd__(self)  # type: ignore

        return add(self, rhs)  # type: ignore

    def __sub__(self, rhs: Self | T | int) -> Self:
        if self._is_constant(rhs):
            return self.__class__(self._primal - rhs, self._tangent, self._tag)  # type: ignore

        if rhs._tag > self._tag:  # type: ignore
            return rhs.__rsub__(self)  # type: ignore

        return self.__class__(
            self._primal - rhs._primal,  # type: ignore
            self._tangent - rhs._tangent,  # type: ignore
            self._tag,
        )

    def __mul__(self, rhs: Self | T | int) -> Self:
        if self._is_constant(rhs):
            return self.__class__(self._primal * rhs, self._tangent * rhs, self._tag)  # type: ignore

        if rhs._tag > self._tag:  # type: ignore
            return rhs.__rmul__(self)  # type: ignore

        return mul(self, rhs)  # type: ignore

    def __truediv__(self, rhs: Self | T | int) -> Self:
        if self._is_constant(rhs):
            return self.__class__(self._primal / rhs, self._tangent / rhs, self._tag)  # type: ignore

        if rhs._tag > self._tag:  # type: ignore
            return rhs.__rtruediv__(self)  # type: ignore

        s = rhs._primal**2  # type: ignore
        tangent = (self._tangent * rhs._primal - self._primal * rhs._tangent) / s  # type: ignore
        return self.__class__(self._primal / rhs._primal, tangent, self._tag)  # type: ignore

    def __pow__(self, rhs: Self | T | int) -> Self:
        if not self._is_constant(rhs):
            from dualdiff import function as ddf

            return ddf.pow(self, rhs)

        if rhs == 0:
            return self.__class__(self._primal**0, self._tangent * 0, self._tag)  # type: ignore

        tangent = rhs * self._primal ** (rhs - 1) * self._tangent  # type: ignore
        return self.__class__(self._primal**rhs, tangent, self._tag)  # type: ignore

    def __neg__(self) -> Self:
        return self.__class__(-self._primal, -self._tangent, self._tag)  # type: ignore

    def __pos__(self) -> Self:
        return self.__class__(+self._primal, +self._tangent, self._tag)  # type: ignore

    def __abs__(self) -> Self:
        if self._primal < 0:  # type: ignore
            return self.__neg__()

        return self.__pos__()

    def __radd__(self, lhs: Self | T | int) -> Self:
        if self._is_constant(lhs):
            return self.__class__(lhs + self._primal, self._tangent, self._tag)  # type: ignore

        return lhs.__add__(self)  # type: ignore

    def __rsub__(self, lhs: Self | T | int) -> Self:
        if self._is_constant(lhs):
            return self.__class__(lhs - self._primal, -self._tangent, self._tag)  # type: ignore

        return lhs.__sub__(self)  # type: ignore

    def __rmul__(self, lhs: Self | T | int) -> Self:
        if self._is_constant(lhs):
            return scale(lhs, self)  # type: ignore

        return lhs.__mul__(self)  # type: ignore

    def __rtruediv__(self, lhs: Self | T | int) -> Self:
        if self._is_constant(lhs):
            s = self._primal**2  # type: ignore
            tangent = -(lhs * self._tangent) / s  # type: ignore
            return self.__class__(lhs / self._primal, tangent, self._tag)  # type: ignore

        return lhs.__truediv__(self)  # type: ignore

    def __rpow__(self, lhs: T | int) -> Self:
        from dualdiff import function as ddf

        return ddf.pow(lhs, self)

    def _compare(self, rhs: Any, op: Callable[[Any, Any], bool]) -> bool:
        if self._is_constant(rhs):
            return op(self._primal, rhs)

        if rhs._tag > self._tag:
            return op(self, rhs._primal)

        return op(self._primal, rhs._primal)

    def __lt__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.lt)

    def __le__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.le)

    def __gt__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.gt)

    def __ge__(self, rhs: Self | T | int) -> bool:
        return self._compare(rhs, operator.ge)


def make[T: Ring](primal: T, tangent: T) -> Dual[T]:
    """Return a dual with the given parts.

    This is an alias of ``Dual(primal, tangent)``.
    """
    return Dual(primal, tangent)


def add[T: Ring](a: Dual[T], b: Dual[T]) -> Dual[T]:
    """Return the sum of two duals.

    The tangent is the sum of the tangents, i.e. the derivative is linear.
    """
    return type(a)(a.primal + b.primal, a.tangent + b.tangent, a.tag)


def mul[T: Ring](a: Dual[T], b: Dual[T]) -> Dual[T]:
    """Return the product of two duals.

    The tangent follows the product rule ``(fg)' = fg' + f'g``.

    Examples
    --------
    >>> mul(Dual(2, 1), Dual(5, 3))
    Dual(primal=10, tangent=11)
    """
    tangent = a.primal * b.tangent + a.tangent * b.primal
    return type(a)(a.primal * b.primal, tangent, a.tag)


def scale[T: Ring](c: T, a: Dual[T]) -> Dual[T]:
    """Return `a` multiplied by the constant `c` from the left.

    Unlike ``mul(Dual(c, 0), a)``, this does not require a zero element.
    """
    return type(a)(c * a.primal, c * a.tangent, a.tag)

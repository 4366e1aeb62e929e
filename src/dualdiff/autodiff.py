import contextvars
import functools
import os
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import numpy as np
import numpy.typing as npt

from dualdiff.dual import Dual
from dualdiff.logger import dualdiff_logger

MAX_WORKERS_ENV = "DUALDIFF_MAX_WORKERS"


def derivative[T](fun: Callable[[Any], Any], x: T, one: T | None = None) -> T:
    """Evaluate the derivative of the univariate scalar-valued function at `x`.

    Parameters
    ----------
    fun : Callable
        Differentiated function. It must be written with operations that
        :class:`Dual` supports, e.g. arithmetic and :mod:`dualdiff.function`.
    x : T
        Point at which the derivative is evaluated.
    one : T, optional
        Multiplicative identity used as the seed of the tangent. If omitted, it is
        computed as ``x * 0 + 1``.

    Returns
    -------
    T
        Derivative of `fun` at `x`. If `fun` does not depend on its argument,
        ``x * 0`` is returned.

    Warnings
    --------
    `fun` must not branch on the tangent component. Branching on the value is
    allowed, and the result is the derivative of the taken branch.

    Examples
    --------
    >>> derivative(lambda x: x**3, 2)
    12
    >>> derivative(lambda x: x**2 + 2 * x, 2.0)
    6.0
    """
    if one is None:
        one = x * 0 + 1  # type: ignore

    seed = Dual.variable(x, one)
    result = fun(seed)

    if not isinstance(result, Dual) or result.tag != seed.tag:
        return x * 0  # type: ignore

    return result.tangent


def deriv[T](fun: Callable[..., T], one: T | None = None) -> Callable[..., T]:
    """Return a function that evaluates the derivative of the univariate scalar-valued
    function.

    Parameters
    ----------
    fun : Callable
        Differentiated function. Keyword arguments given to the returned function are
        passed through to `fun` and are not differentiated.
    one : T, optional
        Seed of the tangent (see :func:`derivative`).

    Returns
    -------
    Callable
        Derivative of `fun`.

    Examples
    --------
    >>> from dualdiff import function as ddf
    >>> df = deriv(lambda x: x**2 + ddf.sqrt(x + 3))
    >>> print(format(df(1.2), ".6g"))
    2.64398

    Since the returned function accepts duals, the second-order derivative can be
    obtained in the same manner.

    >>> d2f = deriv(df)
    >>> print(format(d2f(1.2), ".6g"))
    1.97096
    """

    @functools.wraps(fun)
    def result(x, /, **kwargs):
        return derivative(functools.partial(fun, **kwargs), x, one)

    return result


def derivatives[T](
    fun: Callable[[Any], Any],
    xs: Iterable[T],
    one: T | None = None,
    *,
    max_workers: int | None = None,
) -> list[T]:
    """Evaluate the derivative of `fun` at each point of `xs`.

    Parameters
    ----------
    fun : Callable
        Differentiated function.
    xs : Iterable[T]
        Points at which the derivative is evaluated.
    one : T, optional
        Seed of the tangent (see :func:`derivative`).
    max_workers : int, optional
        Number of threads. If omitted, the environment variable
        ``DUALDIFF_MAX_WORKERS`` is used, and the points are processed sequentially if
        it is not set.

    Returns
    -------
    list[T]
        Derivatives in the same order as `xs`.

    Raises
    ------
    ValueError
        If `max_workers` is less than 1.
    """
    points = list(xs)
    workers = _resolve_workers(max_workers)

    if workers == 1 or len(points) <= 1:
        return [derivative(fun, x, one) for x in points]

    dualdiff_logger.debug("evaluating %d derivatives on %d threads", len(points), workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = []

        for x in points:
            ctx = contextvars.copy_context()
            futures.append(executor.submit(ctx.run, derivative, fun, x, one))

        return [future.result() for future in futures]


def derivative_curve(
    fun: Callable[[Any], Any],
    start: float,
    stop: float,
    num: int = 50,
    *,
    max_workers: int | None = None,
) -> npt.NDArray[np.float64]:
    """Sample the derivative of the real function `fun` on an evenly spaced grid.

    The grid is ``numpy.linspace(start, stop, num)``.

    Examples
    --------
    >>> derivative_curve(lambda x: x**2, 0.0, 1.0, 3)
    array([0., 1., 2.])
    """
    grid = np.linspace(start, stop, num).tolist()
    values = derivatives(fun, grid, max_workers=max_workers)
    return np.asarray(values, dtype=np.float64)


def _resolve_workers(max_workers: int | None) -> int:
    if max_workers is None:
        env = os.getenv(MAX_WORKERS_ENV)

        if not env:
            return 1

        try:
            workers = int(env)
        except ValueError:
            workers = 0

        if workers < 1:
            dualdiff_logger.debug("ignoring %s=%r", MAX_WORKERS_ENV, env)
            return 1

        return workers

    if max_workers < 1:
        raise ValueError("max_workers must be positive")

    return max_workers


def defderiv[**P](
    fun: Callable[P, Any], deriv: Callable[P, Any], *, argnum: int = 0
) -> None:
    """Register the partial derivative of the primitive `fun` w.r.t. the `argnum`-th
    argument.

    Raises
    ------
    ValueError
        If `fun` is not decorated with :func:`primitive`.
    """
    if "_dualdiff_is_primitive" not in fun.__dict__:
        raise ValueError(f"{fun.__name__} is not a primitive")

    fun.__dict__["_dualdiff_derivs"][argnum] = deriv


def primitive[T, **P](fun: Callable[P, T]) -> Callable[P, T]:
    """Make `fun` differentiable w.r.t. its positional arguments.

    When some of the arguments are duals, those of the largest tag are replaced by
    their primals, and the tangent is obtained by the chain rule from the partial
    derivatives registered with :func:`defderiv`.
    """
    derivs: dict[int, Callable] = {}

    @functools.wraps(fun)
    def wrapper(*args, **kwargs):
        if not any(isinstance(x, Dual) for x in args):
            return fun(*args, **kwargs)

        max_tag = max(x.tag for x in args if isinstance(x, Dual))
        args_real: list = []
        args_dual: list[tuple[int, Dual]] = []

        for argnum, arg in enumerate(args):
            if not isinstance(arg, Dual) or arg.tag < max_tag:
                args_real.append(arg)
                continue

            args_real.append(arg.primal)
            args_dual.append((argnum, arg))

        tangent: Any = None

        for argnum, arg in args_dual:
            if argnum not in derivs:
                raise TypeError(
                    f"{fun.__name__} is not differentiable w.r.t. argument {argnum}"
                )

            tmp = derivs[argnum](*args_real, **kwargs) * arg.tangent
            tangent = tmp if tangent is None else tangent + tmp

        return Dual(wrapper(*args_real, **kwargs), tangent, max_tag)

    wrapper.__dict__["_dualdiff_is_primitive"] = True
    wrapper.__dict__["_dualdiff_derivs"] = derivs
    return wrapper  # type: ignore

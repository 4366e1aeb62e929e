from .autodiff import derivative, derivative_curve, derivatives, deriv
from .dual import Dual, add, make, mul, scale
from .function import cos, exp, log, pow, sin, sqrt, tan
from .measurement import Measurement

__all__ = [
    "derivative",
    "derivative_curve",
    "derivatives",
    "deriv",
    "Dual",
    "add",
    "make",
    "mul",
    "scale",
    "cos",
    "exp",
    "log",
    "pow",
    "sin",
    "sqrt",
    "tan",
    "Measurement",
]

"""
Python pricing kernels.

Each kernel is a module of pure functions over keyword-only `Decimal`
arguments, evaluated in a local fixed-precision context. Results are
rounded in the pool's favor.
"""

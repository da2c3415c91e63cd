# faultlock: fault-injection pattern detection for C source code.

__version__ = "0.1.0"

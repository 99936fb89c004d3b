"""
Deal Evaluation Engine

Pure calculation modules for income-property and flip analysis.
Nothing here performs I/O or raises for bad numeric input.
"""

from pat.calculations import numeric, amortization, banding, income_property, flip

__all__ = ["numeric", "amortization", "banding", "income_property", "flip"]

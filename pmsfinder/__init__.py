"""
pmsfinder - ink formula aggregation and closest-colour matching.

Collects ink formulas from local spreadsheet exports, a scraped mixing
site and three vendor APIs into one record shape, then ranks them by
RGB distance to a target colour.
"""

__version__ = "1.0.0"

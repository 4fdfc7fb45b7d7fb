# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/__init__.py
"""
Batch import of the merchant taxonomy CSV into a lineage-keyed hierarchy.
"""

__version__ = "0.1.0"

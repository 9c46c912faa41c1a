"""
Somatic gVCF reference-confidence blocking.
"""

__version__ = "0.1.0"

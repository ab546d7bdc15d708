"""
Source code for the TCGA Lower Grade Glioma (LGG) walkthrough.

This package contains modules for retrieving, processing, and visualizing
expression, clinical, and somatic mutation data from TCGA-LGG samples.
"""

__version__ = "1.0.0"

# src/atlas_targets/_version.py
__version__ = "0.1.0"

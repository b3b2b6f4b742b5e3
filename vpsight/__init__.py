"""VPSight - rented VPS billing dashboard"""

__version__ = "1.0.0"

# i2cbridge/__init__.py
"""Host-side driver for a USB-to-I2C bridge."""

__version__ = "0.1.0"

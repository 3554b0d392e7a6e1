"""HTTP control surface over one headless browser page, with coordinate-grid screenshots."""

__version__ = "0.1.0"

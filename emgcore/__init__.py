"""EMG data helpers: bounds checks, conversions, integrity checks, timing, validation and a wrapping error type."""

__version__ = "0.1.0"
__all__ = ["bounds", "conversion", "integrity", "timing", "validators", "validation", "errors"]
"""netgen -- scaffolding engine for network service projects."""

__version__ = "0.3.0"

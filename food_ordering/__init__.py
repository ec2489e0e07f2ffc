"""Food-ordering backend: customers, vendors, delivery personnel and admins."""

__version__ = "1.0.0"

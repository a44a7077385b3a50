"""Coaching-center administration: repository layer and JSON API."""

__version__ = "0.1.0"

"""Prometheus exporter for the Outline wiki."""

from outline_exporter.constants import APP_VERSION

__version__ = APP_VERSION

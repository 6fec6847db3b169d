"""Inventory System package.

This package is organized by feature modules (users, monitors, ...)
with a thin Flask controller layer and service/repository layers.
"""

"""
Restaurant Menu API: restaurants, menus, tables, orders and QR codes.
"""

__version__ = "1.0.0"

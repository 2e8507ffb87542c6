# wg_manager/__init__.py
"""
WireGuard Manager
Stateful configuration of WireGuard servers and their clients
"""

__version__ = "1.0.0"

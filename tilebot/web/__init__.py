"""
Web Module
==========

Flask-based dashboard for watching and steering the agent loop.

Components:
    server.py    - Flask + SocketIO server and the MetricsPublisher sink
    templates/   - HTML templates
"""

from .server import WebDashboard, MetricsPublisher

__all__ = ['WebDashboard', 'MetricsPublisher']

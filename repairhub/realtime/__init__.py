"""Realtime infrastructure (Socket.IO fan-out).

This package holds the cross-domain realtime primitives so chat, repair and
order tracking, and notifications share one socket server. Domain apps
publish through :mod:`repairhub.realtime.publish` and never touch the
Socket.IO server directly.
"""

"""Attendance Verification & Recording Engine.

This package is organized by feature modules (attendance, credentials,
geofence, reports, ...) with a thin Flask controller layer over
service/repository layers and a pluggable document store.
"""

"""Locations app package.

Distributors own locations; a location groups stands and a stand holds
the rentable boxes. Location-level weekly pricing and the read-only
availability endpoints live here as well.
"""

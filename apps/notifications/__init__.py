"""Notifications app package.

In-app notifications created by the booking core (confirmations,
extensions, box reassignments, cancellations) and their e-mail delivery.
"""

"""Bookings app package.

This app encapsulates the booking lifecycle: availability and conflict
checks, the booking creation transaction (payment completion, lock PIN,
daily display codes), booking extensions with automatic reassignment of
displaced bookings, cancellations and status synchronisation.
"""

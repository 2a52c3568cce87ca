"""Payments app package.

Holds the payment records produced by the external payment gateway. The
booking core reads the metadata bag stored on a payment and marks the
payment completed when its booking is created.
"""

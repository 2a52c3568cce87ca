"""
Shared Kernel

Base classes and utilities shared by the booking, locations and
notification contexts: domain events, value objects, the unit of work
and the message bus that routes events once a transaction commits.
"""

"""Smart-lock integration.

Issues hourly access PINs for booked boxes through the Igloo developer
API. A PIN is mandatory for every booking and every extension.
"""

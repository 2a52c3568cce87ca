"""Settings package for the box rental platform.

`base.py` contains common configuration shared across environments.
`dev.py`, `prod.py` and `test.py` extend base settings with environment
specific overrides.
"""

"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that features use
(settings, logging, DB wiring, the media host client). Keep feature-specific
SQL and business logic in the corresponding feature package (e.g. `projects/`).
"""

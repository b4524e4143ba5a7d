"""
Backend package for the studio portfolio site.

This package provides the FastAPI application that fronts the object store,
and the data-access layer the site and admin tools use to read, curate and
publish project and category content.
"""

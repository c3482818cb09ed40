"""UAlumni backend.

REST API for an alumni network: alumni accounts with their resumes,
reference catalogues, job offers, and email notifications. `main.app` is
the ASGI application.
"""

"""
Logging and metrics for the import job.
"""

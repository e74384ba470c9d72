"""
Job Queue Backend

A job queue with an atomic claim protocol: producers submit jobs, workers
claim pending jobs exclusively and report success or failure back.
"""

__version__ = "1.0.0"

"""
Training Funds Request Workflow

Submission, approval and disbursement routing for training funds requests.
"""

__version__ = "1.0.0"

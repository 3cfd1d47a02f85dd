"""
PMC deposit workflow for a scientific content management platform.

Grant rules, metadata validation, the submission status lifecycle and
version cloning over an optimistic-concurrency metadata store.
"""

__version__ = "1.0.0"

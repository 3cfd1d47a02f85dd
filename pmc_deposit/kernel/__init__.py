"""
Kernel layer: persistence models, the activity trail and the
optimistic-concurrency metadata store.
"""

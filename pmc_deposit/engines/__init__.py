"""
Pure business-rule engines: grant rules, metadata validation and DOI helpers.
"""

"""
Statistics recorder and demo harness tests
"""

"""
Car selection policy tests
"""

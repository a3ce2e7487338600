"""
Configuration and YAML loader tests
"""

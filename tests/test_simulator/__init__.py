"""
Simulator core tests: request queue, car and dispatcher
"""

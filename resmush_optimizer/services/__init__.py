"""
Optimizer services
"""

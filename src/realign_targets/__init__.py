"""
finds the intervals of an alignment which should be targeted for local realignment
"""
__version__ = '1.0.0'

"""
LearnArai.
A small bilingual blog that renders markdown posts on every request.
"""

__version__ = '1.0.0'

"""Nomadigma: bilingual blog and store back office"""

__version__ = "1.0.0"

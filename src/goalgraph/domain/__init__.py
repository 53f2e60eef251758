"""Domain layer — node variants, relation kinds and request values.

Pure Python, no infrastructure dependencies. Infrastructure and services
import from here, never the reverse.
"""

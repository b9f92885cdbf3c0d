"""Annex Remote Runtime.

A git-annex external special remote: speaks the external special remote
protocol on stdin/stdout and stores content through pluggable storage
backends.
"""

__version__ = "0.1.0"

"""
filekv: Filesystem-Backed Key-Value Server

A small key-value server that speaks a one-request-per-connection text
protocol over TCP and persists every entry as a file in a data directory.
"""

__version__ = "1.0.0"

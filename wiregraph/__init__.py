"""
wiregraph - connectivity graph engine for interactive wire and trace routing.

The package keeps a geometric graph of wire vertices and edges consistent
while it is edited through atomic transactions, and drives interactive
routing from pointer and keyboard events.
"""

__version__ = "0.1.0"
__author__ = "wiregraph Contributors"

"""
Partywatch: party event notifications for FFXIV

Listens to the ACT/IINACT MiniParse event stream, picks out party fill,
disband, join and leave messages, and forwards them to Pushover.
"""

__version__ = "0.1.0"
__author__ = "Partywatch Team"

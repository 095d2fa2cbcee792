"""
ClearSend: local cleaning of outgoing message recipients.

Sorts, deduplicates, validates and reorders To/CC/BCC lists according to an
ordered, user-selected set of steps, keeping an auditable record of each.
Nothing leaves the process: no network calls, no DNS lookups.
"""

__version__ = "0.3.0"

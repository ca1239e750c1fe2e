"""
EventLog Package.

Keeps the phone unlock log and the sleep log in memory, mirrors them to a
local key-value storage and derives daily statistics from them.
"""
import logging

# Applications using this package should configure their own logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

VERSION = "0.1.0"

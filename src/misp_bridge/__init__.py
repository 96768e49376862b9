# MISP Bridge
#
# Exposes a MISP threat-intelligence instance as callable tools for an
# automated agent: a gateway client with a fixed failure taxonomy, a
# bulk executor, and a cross-event correlation engine.

__version__ = "0.1.0"
__author__ = "MISP Bridge Team"

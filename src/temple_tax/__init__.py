"""Temple tax liability engine.

Cumulative tax liability for temple trust registrants: year-by-year tax
policy, registrant history, liability breakdown and payment reconciliation.
"""

__version__ = "1.0.0"

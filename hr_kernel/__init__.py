"""
HR Kernel - approval workflow core

A multi-stage approval engine for HR requests with:
- Slot-based org hierarchy for approver resolution
- Optimistic-locked state transitions
- Append-only approval log and request snapshots
- Transactional notification outbox
- Parallel clearance lanes for separations
"""

__version__ = "0.1.0"

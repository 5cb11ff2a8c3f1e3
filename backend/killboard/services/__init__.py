"""Dashboard domain services: stats ledger, roster sync, events, fan-out.

HTTP routes and socket handlers import from here, keeping transport
concerns separated from the state-consistency logic.
"""

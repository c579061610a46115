"""Escrow-and-wager state machine for unique collectibles.

The lifecycle core (guards, FSM, store) is kept free of FastAPI concerns so it
can be driven from API routes, scripts, and tests alike.
"""

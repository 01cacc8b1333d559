"""
Monikers - Party Guessing Game Engine

Teams take turns cluing cards from a shared deck over three rounds,
each with a stricter clue rule, against a countdown. The engine provides:
- An immutable game context and a pure state machine
- Deck handling (shuffle, draw, guess, skip, round reseeding)
- A cancellable turn timer and an actor that supervises it
- A REST/WebSocket API for display clients
"""

__version__ = "0.1.0"

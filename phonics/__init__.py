"""Phonics mini-game engine: question generation, session state, and the HTTP surface."""

"""Game domain services: letter pairs, scoring, countdown and lifecycle.

The pure engines (letters, scoring, countdown) have no Flask or database
imports; lifecycle and scoreboard wire them to the models and change feed.
"""

"""Round engine for the number memory game.

Staircase difficulty, digit grouping, timer scheduling and the state
machine that steps each round along. Nothing in here imports Flask; the
blueprint and the socket handlers drive it through ``RoundController``.
"""

"""
Gomoku room server.

Coordinates two-player Gomoku sessions over WebSockets: room lifecycle,
authoritative board state, move validation and ordered broadcast.
"""

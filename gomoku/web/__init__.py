"""
Web interface module for Gomoku.

Provides the FastAPI-based server for:
- Creating and joining two-player rooms
- Playing moves with server-side validation
- Room chat and restarts
"""

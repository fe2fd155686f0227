"""
Application entry points (CLI commands).
"""

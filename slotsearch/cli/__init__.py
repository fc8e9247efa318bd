"""
CLI layer - User interface using Typer.
"""

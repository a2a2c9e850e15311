"""
Command-line interface for Toolbox.

Entry point: toolbox.cli.main:main
"""

"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Column names, sheet labels, named thresholds
- logging: Logger configuration
- exceptions: Custom exception hierarchy
"""

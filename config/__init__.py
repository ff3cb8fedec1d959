"""
Configuration Package

Central settings (config/settings.py) and optional YAML recorder defaults.
"""

"""
Configuration package: environment settings, logging and Sentry setup
"""

"""
Configuration Management
========================

Environment-based configuration using Pydantic Settings.

Components:
- settings: engine budgets, compiler output options and logging levels
- logging: structured logging configuration
"""

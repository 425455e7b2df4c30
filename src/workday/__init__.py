"""Workday package.

Feature modules (attendance, reports, tasks, team, users) each carry a thin Flask
controller over service and repository layers.
"""

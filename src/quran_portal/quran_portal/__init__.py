"""Quran Portal package.

Feature modules (users, classes, students, attendance, lessons, notifications,
billing, ...) each carry a model, a repository protocol with its MySQL
implementation, a service and a thin Flask JSON controller.
"""

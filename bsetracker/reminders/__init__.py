"""Reminder service module (scheduler, dispatcher, API, Celery tasks).

Computes cycle-synchronised self-exam reminders, keeps exactly one pending
reminder per user, and periodically emails the ones that fall due.
"""

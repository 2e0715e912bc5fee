"""
Articles app for Newsdesk.

Provides article storage, the editorial approval workflow, and state
change notifications.
"""

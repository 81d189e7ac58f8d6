"""Church web application notification core.

Persistence, targeting, live streaming and Web Push delivery of member
notifications.
"""

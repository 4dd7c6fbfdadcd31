"""Pool engine services: lifecycle, live scoring and leaderboards.

Domain logic for the maintenance and scoring loops. HTTP routes and socket
handlers only read what these services write; nothing here depends on a
request context.
"""

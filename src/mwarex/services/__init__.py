"""Domain services for accounts, invites, rooms and videos."""

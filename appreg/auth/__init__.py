"""Identity and authorization: the owner, the manager roster, and role checks."""

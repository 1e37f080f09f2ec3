"""Local spool directory collaborator."""

"""CLI command modules registered on the ``issuedesk`` click group."""

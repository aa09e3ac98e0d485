"""Services subpackage - stores, notifications and the quote workflow."""

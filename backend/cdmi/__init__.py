"""CDMI uploads backend: row items with archived attachments, fingerprint block-list, login logs."""

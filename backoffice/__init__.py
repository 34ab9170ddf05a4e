"""T-Soft back-office: tolerant upstream client, HTTP API and local ledgers."""

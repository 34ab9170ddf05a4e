"""
Real HTTP integration clients.

These clients communicate with the T-Soft store over HTTP:
- transport: the two request styles (legacy form POST, JSON GET/POST)
- tsoft_client: domain operations with endpoint fallback

Important:
- Must return Envelope results built from backoffice.integrations.contracts, never raise on upstream failure.
"""

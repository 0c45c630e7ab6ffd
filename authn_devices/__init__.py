"""WebAuthn device records and their ceremony, storage and export adapters."""

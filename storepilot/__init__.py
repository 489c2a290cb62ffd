"""StorePilot backend: auth and rate-limit core for the Shopify store automation API."""

__version__ = "0.1.0"
